from ..identifiers import find_nric, normalize_patient_name
from ..logs import log
from ..models import ExtractionCandidate, SelectorStrategy
from ..signatures import DEFAULT_TABLE, strip_obstruction_text
from ..text import clean, normalize_text, parse_amount


def _by_label(*labels):
    pats = []
    for label in labels:
        pats.append(f"xpath=//*[normalize-space(text())='{label}']/following-sibling::*[1]")
        pats.append(f"xpath=//td[normalize-space(.)='{label}']/following-sibling::td[1]")
    return tuple(pats)


FREE_TEXT_FIELDS = {
    "diagnosis": SelectorStrategy("diagnosis", (
        "textarea[name*='diagnosis' i]",
        "textarea[id*='diagnosis' i]",
        "input[name*='diagnosis' i]",
        "[id*='diagnosis' i][contenteditable='true']",
    ) + _by_label("Diagnosis", "Diagnosis Pri", "Primary Diagnosis")),
    "notes": SelectorStrategy("notes", (
        "textarea[name*='note' i]",
        "textarea[id*='note' i]",
        "textarea[name*='remark' i]",
        "textarea[id*='complaint' i]",
    ) + _by_label("Notes", "Clinical Notes", "Case Notes", "Remarks")),
}

STRUCTURED_FIELDS = {
    "nric": SelectorStrategy("nric", (
        "input[name*='nric' i]",
        "input[id*='nric' i]",
    ) + _by_label("NRIC", "NRIC/FIN", "IC No")),
    "patient_name": SelectorStrategy("patient name", (
        "input[name*='patientname' i]",
        "input[id*='patientname' i]",
    ) + _by_label("Patient Name", "Name")),
    "fee": SelectorStrategy("fee", (
        "input[name*='totalamount' i]",
        "input[id*='total' i]",
    ) + _by_label("Total", "Total Amount", "Fee", "Amount")),
    "referral_clinic": SelectorStrategy("referral clinic", (
        "input[name*='referral' i]",
        "select[name*='referral' i]",
        "input[id*='referral' i]",
    ) + _by_label("Referral Clinic", "Referred To", "Referral")),
    "mc_days": SelectorStrategy("mc days", (
        "input[name*='mcday' i]",
        "input[id*='mcday' i]",
        "input[name*='mc_day' i]",
    ) + _by_label("MC Days", "MC", "Medical Leave")),
}

ITEM_ROW_PATTERNS = (
    "#drugTable tbody tr",
    "table:has(th:has-text('Item')) tbody tr",
    "table:has(th:has-text('Drug')) tbody tr",
    "table:has(th:has-text('Medication')) tbody tr",
)


def _read(driver, ref):
    try:
        return driver.read_value(ref) or ""
    except Exception:
        return ""


def free_text_candidates(driver, strat, table=DEFAULT_TABLE, field="text"):
    out = []
    seen = set()
    for pat in strat.patterns:
        for ref in driver.query(pat):
            if not driver.is_visible(ref):
                continue
            text = normalize_text(strip_obstruction_text(_read(driver, ref), table))
            if not text or text in seen:
                continue
            seen.add(text)
            out.append(ExtractionCandidate(text=text, source_tag=f"visit:{field}:{pat}"))
    return out


def _structured(field, raw, pat):
    value = clean(raw)
    if not value:
        return None
    tag = f"visit:{field}:{pat}"
    if field == "nric":
        hit = find_nric(value)
        return ExtractionCandidate(text=value, source_tag=tag, nric=hit[0]) if hit else None
    if field == "patient_name":
        name = normalize_patient_name(value)
        return ExtractionCandidate(text=value, source_tag=tag, patient_name=name) if name else None
    if field == "fee":
        fee = parse_amount(value)
        return ExtractionCandidate(text=value, source_tag=tag, fee=fee) if fee is not None else None
    return ExtractionCandidate(text=value, source_tag=tag)


def structured_candidates(driver, field, strat, table=DEFAULT_TABLE):
    out = []
    for pat in strat.patterns:
        for ref in driver.query(pat):
            if not driver.is_visible(ref):
                continue
            raw = strip_obstruction_text(_read(driver, ref), table)
            cand = _structured(field, raw, pat)
            if cand is not None:
                out.append(cand)
        if out:
            break
    return out


def item_candidates(driver, table=DEFAULT_TABLE):
    for pat in ITEM_ROW_PATTERNS:
        rows = driver.query(pat)
        if not rows:
            continue
        out = []
        for row in rows:
            cells = [clean(c) for c in driver.cell_texts(row)]
            name = next((c for c in cells if c and any(ch.isalpha() for ch in c)), "")
            if name:
                out.append(ExtractionCandidate(text=name, source_tag=f"visit:items:{pat}"))
        if out:
            return out
    return []


def extract_visit(driver, cfg=None, table=DEFAULT_TABLE):
    """Candidates per field from the visit record currently on screen."""
    found = {}
    for field, strat in FREE_TEXT_FIELDS.items():
        found[field] = free_text_candidates(driver, strat, table, field)
    for field, strat in STRUCTURED_FIELDS.items():
        found[field] = structured_candidates(driver, field, strat, table)
    found["items"] = item_candidates(driver, table)
    log("[visit] candidates: " + ", ".join(f"{k}={len(v)}" for k, v in found.items()))
    return found
