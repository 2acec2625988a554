import re

_WS_RX = re.compile(r"\s{2,}")
_AMOUNT_RX = re.compile(r"-?\d[\d,]*(?:\.\d+)?|-?\.\d+")
_DECIMAL_RX = re.compile(r"^(?:S?\$\s*)?-?\d{1,3}(?:,\d{3})*\.\d{1,2}$|^(?:S?\$\s*)?-?\d+\.\d{1,2}$|^S?\$\s*-?\d[\d,]*$")
_SEQ_RX = re.compile(r"^\d{1,3}$")
_RECORD_RX = re.compile(r"^\d{5,}$")
_NAME_WORD_RX = re.compile(r"[A-Za-z][A-Za-z'.\-@/]*")
_NAME_CHARS_RX = re.compile(r"^[A-Za-z][A-Za-z ,.'\-@/()]*$")


def clean(s):
    return _WS_RX.sub(" ", (s or "").replace("\xa0", " ")).strip()


def normalize_text(s: str) -> str:
    s = (s or "").replace("\xa0", " ")
    s = re.sub(r"\r?\n\s*\r?\n+", "\n\n", s)
    s = re.sub(r"[ \t]+", " ", s)
    s = re.sub(r"\s*\n\s*", "\n", s).strip()
    return s


def cell_str(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return clean(str(value))


def parse_amount(value):
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return round(float(value), 2)
    s = clean(str(value)).replace("S$", "").replace("$", "")
    m = _AMOUNT_RX.search(s)
    if not m:
        return None
    try:
        return round(float(m.group(0).replace(",", "")), 2)
    except ValueError:
        return None


def is_sequence_number(s) -> bool:
    return bool(_SEQ_RX.match(clean(s)))


def is_record_number(s) -> bool:
    return bool(_RECORD_RX.match(clean(s)))


def is_decimal_amount(s) -> bool:
    return bool(_DECIMAL_RX.match(clean(s)))


def is_name_like(s) -> bool:
    s = clean(s)
    if not s or not _NAME_CHARS_RX.match(s):
        return False
    return len(_NAME_WORD_RX.findall(s)) >= 2


def is_blank_row(cells) -> bool:
    return not any(clean(c) for c in (cells or []))


def truncate(s, n=80):
    s = clean(s)
    return s if len(s) <= n else s[: n - 1] + "…"
