import re

from .text import clean

NRIC_PREFIXES = "STFGM"
_NRIC_FULL_RX = re.compile(rf"^[{NRIC_PREFIXES}]\d{{7}}[A-Z]$")
_SEP = r"[\s./\-_,]*"

# Tried in this order; the first variant that matches wins for a row.
NRIC_PATTERNS = (
    ("compact", re.compile(rf"(?<![A-Za-z0-9])([{NRIC_PREFIXES}]\d{{7}}[A-Z])(?![A-Za-z0-9])", re.I)),
    ("spaced", re.compile(rf"(?<![A-Za-z0-9])([{NRIC_PREFIXES}])\s+(\d{{7}})\s*([A-Z])(?![A-Za-z0-9])", re.I)),
    ("grouped", re.compile(rf"(?<![A-Za-z0-9])([{NRIC_PREFIXES}])\s*(\d{{3,4}})\s+(\d{{3,4}})\s*([A-Z])(?![A-Za-z0-9])", re.I)),
    ("slash", re.compile(rf"(?<![A-Za-z0-9])([{NRIC_PREFIXES}])\s*/\s*(\d{{7}})\s*/\s*([A-Z])(?![A-Za-z0-9])", re.I)),
    ("dash", re.compile(rf"(?<![A-Za-z0-9])([{NRIC_PREFIXES}])\s*-\s*(\d{{7}})\s*-\s*([A-Z])(?![A-Za-z0-9])", re.I)),
    ("loose", re.compile(
        rf"(?<![A-Za-z0-9])([{NRIC_PREFIXES}]){_SEP}" + _SEP.join([r"(\d)"] * 7) + rf"{_SEP}([A-Z])(?![A-Za-z0-9])",
        re.I,
    )),
)

_PCNO_RX = re.compile(r"^\d{4,}$")

_TAG_TOKENS = (
    "TAG", "AVIVA", "SINGLIFE", "MHC", "AIA", "AIACLIENT", "GE", "ALLIANZ", "FULLERT",
    "IHP", "TOKIOM", "ALLIANC", "ALLSING", "AXAMED", "PRUDEN",
)
_TAG_TOKEN_RX = re.compile(r"(?:^|\b)(?:" + "|".join(_TAG_TOKENS) + r")(?:\b|$)")
_LEADING_TAGS_RX = re.compile(
    r"^(?:\s*(?:TAG\s+)?(?:"
    + "|".join(sorted((t for t in _TAG_TOKENS if t != "TAG"), key=len, reverse=True))
    + r")\b\s*)+(?:[|:/-]+\s*)*",
    re.I,
)


def normalize_nric(value):
    s = clean(str(value)) if value is not None else ""
    if not s:
        return None
    compact = re.sub(r"[^A-Za-z0-9]+", "", s).upper()
    if not _NRIC_FULL_RX.match(compact):
        return None
    return compact


def is_valid_nric(value) -> bool:
    return normalize_nric(value) is not None


def find_nric(text):
    """Return ``(normalized, variant)`` for the first identifier in ``text``."""
    for name, rx in NRIC_PATTERNS:
        m = rx.search(text or "")
        if m:
            norm = normalize_nric(m.group(0))
            if norm:
                return norm, name
    return None


def find_all_nrics(text):
    """Every identifier in ``text`` as ``(normalized, start, end)`` sorted by position."""
    taken = []
    out = []
    for _, rx in NRIC_PATTERNS:
        for m in rx.finditer(text or ""):
            if any(m.start() < e and s < m.end() for s, e in taken):
                continue
            norm = normalize_nric(m.group(0))
            if norm:
                taken.append((m.start(), m.end()))
                out.append((norm, m.start(), m.end()))
    out.sort(key=lambda t: t[1])
    return out


def normalize_pcno(value):
    s = clean(str(value)) if value is not None else ""
    if not s:
        return None
    digits = re.sub(r"\D", "", s)
    return digits if _PCNO_RX.match(digits) else None


def normalize_patient_name(value) -> str:
    s = clean(str(value)) if value is not None else ""
    if not s:
        return ""
    upper = s.upper()
    if not _TAG_TOKEN_RX.search(upper):
        return s
    if "-" in s:
        parts = [p.strip() for p in s.split("-") if p.strip()]
        if len(parts) >= 2:
            left = " ".join(parts[:-1]).upper()
            if _TAG_TOKEN_RX.search(left):
                s = parts[-1]
    return _LEADING_TAGS_RX.sub("", s).strip()
