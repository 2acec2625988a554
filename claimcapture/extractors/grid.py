import re

from ..logs import log
from ..signatures import DEFAULT_TABLE
from ..text import clean
from .rows import candidates_from_rows, find_header_row, header_role_count

GRID_ROW_PATTERNS = (
    "#queueLogGrid tr.jqgrow",
    "table.ui-jqgrid-btable tr.jqgrow",
    "[role='grid'] [role='row']:has([role='gridcell'])",
)
GRID_HEADER_PATTERNS = (
    ".ui-jqgrid-htable th",
    "[role='grid'] [role='columnheader']",
)
TABLE_PATTERNS = (
    "table:has(th:has-text('QNo'))",
    "table",
)
TABLE_ROW_PATTERN = "tr"

# Tables that belong to login forms, attachments or page layout.
_BAD_TABLE_RXS = [
    re.compile(r"\bpassword\b", re.I),
    re.compile(r"\buser\s*id\b", re.I),
    re.compile(r"\battachments?\b", re.I),
    re.compile(r"\bfile\s*name\b", re.I),
]
_DESCRIBEDBY_SUFFIX_RX = re.compile(r"_([A-Za-z][A-Za-z0-9]*)$")


def find_grid_rows(driver):
    for pat in GRID_ROW_PATTERNS:
        try:
            rows = driver.query(pat)
        except Exception:
            continue
        if rows:
            return pat, rows
    return None, []


def load_all_rows(driver, row_pattern, max_passes=60, stagnant_limit=4, wait_ms=140):
    """Scroll a virtualized grid until its row count stops growing."""
    prev = -1
    stagnant = 0
    for _ in range(max_passes):
        rows = driver.query(row_pattern)
        n = len(rows)
        if n == prev:
            stagnant += 1
            if stagnant >= stagnant_limit:
                break
        else:
            if prev >= 0:
                log(f"[grid] rows visible: {n}")
            stagnant = 0
        prev = n
        if n:
            driver.scroll_into_view(rows[-1])
        try:
            driver.press("End")
        except Exception:
            pass
        try:
            driver.wheel(1800)
        except Exception:
            pass
        driver.wait(wait_ms)
    return driver.query(row_pattern)


def _labels_from_describedby(driver, row):
    attrs = driver.cell_attributes(row, "aria-describedby")
    labels = []
    for a in attrs:
        m = _DESCRIBEDBY_SUFFIX_RX.search(a or "")
        labels.append(m.group(1) if m else "")
    return labels


def _labels_from_header(driver):
    for pat in GRID_HEADER_PATTERNS:
        refs = driver.query(pat)
        if refs:
            labels = [clean(driver.text_content(r)) or (driver.get_attribute(r, "id") or "") for r in refs]
            if any(labels):
                return labels
    return []


def grid_header_labels(driver, first_row, table=DEFAULT_TABLE):
    labels = _labels_from_describedby(driver, first_row)
    if header_role_count(labels, table) >= 2:
        return labels, "aria-describedby"
    labels = _labels_from_header(driver)
    if header_role_count(labels, table) >= 2:
        return labels, "header"
    return [], "positional"


def extract_grid(driver, cfg=None, table=DEFAULT_TABLE, source_tag="grid"):
    cfg = cfg or {}
    pat, rows = find_grid_rows(driver)
    if not rows:
        return []
    rows = load_all_rows(
        driver, pat,
        max_passes=cfg.get("scroll_max_passes", 60),
        stagnant_limit=cfg.get("scroll_stagnant_passes", 4),
        wait_ms=cfg.get("scroll_wait_ms", 140),
    )
    if not rows:
        return []
    labels, how = grid_header_labels(driver, rows[0], table)
    log(f"[grid] {len(rows)} rows via {pat!r}; columns mapped by {how}")
    cell_rows = [driver.cell_texts(r) for r in rows]
    return candidates_from_rows(cell_rows, source_tag, table, header=labels or None)


def _is_bad_table(text):
    return any(rx.search(text or "") for rx in _BAD_TABLE_RXS)


def table_rows(driver, ref):
    return [driver.cell_texts(tr) for tr in driver.query(TABLE_ROW_PATTERN, within=ref)]


def score_table(driver, ref, table=DEFAULT_TABLE):
    rows = table_rows(driver, ref)
    idx = find_header_row(rows, table)
    if idx is None:
        return -9999, rows
    score = header_role_count(rows[idx], table) * 3
    head_text = " ".join(" ".join(r) for r in rows[: idx + 1])
    if _is_bad_table(head_text) or table.obstruction_match(head_text):
        score -= 5000
    score += min(len(rows) - idx - 1, 50)
    return score, rows


def pick_table(driver, table=DEFAULT_TABLE):
    best = (-9999, None, [])
    for pat in TABLE_PATTERNS:
        for ref in driver.query(pat):
            score, rows = score_table(driver, ref, table)
            if score > best[0]:
                best = (score, ref, rows)
        if best[0] > 0:
            break
    score, ref, rows = best
    if ref is None or score <= 0:
        return None, []
    return ref, rows


def has_keyword_table(driver, table=DEFAULT_TABLE):
    ref, _ = pick_table(driver, table)
    return ref is not None


def extract_table(driver, cfg=None, table=DEFAULT_TABLE, source_tag="table"):
    ref, rows = pick_table(driver, table)
    if ref is None:
        log("[table] no table with recognised headers")
        return []
    header_idx = find_header_row(rows, table)
    log(f"[table] chose table with headers: {rows[header_idx] if header_idx is not None else []}")
    return candidates_from_rows(rows, source_tag, table)


def extract_tabular(driver, cfg=None, table=DEFAULT_TABLE, source_prefix=""):
    out = extract_grid(driver, cfg, table, source_tag=f"{source_prefix}grid")
    if out:
        return out
    return extract_table(driver, cfg, table, source_tag=f"{source_prefix}table")
