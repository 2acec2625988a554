import io
import re

import pdfplumber

from ..errors import ParseFailed
from ..identifiers import find_all_nrics, normalize_patient_name
from ..models import ExtractionCandidate
from ..signatures import DEFAULT_TABLE, strip_obstruction_text
from ..text import clean, is_name_like, parse_amount

_NAME_RUN_RX = re.compile(r"[A-Za-z][A-Za-z ,.'\-@/()]*[A-Za-z.)]")
_RECORD_RUN_RX = re.compile(r"(?<!\d)\d{5,}(?!\d)")
_SEQ_RUN_RX = re.compile(r"(?<![\d.,])\d{1,3}(?![\d.,])")
_FEE_RX = re.compile(r"(?:S?\$\s*)?\d[\d,]*\.\d{2}(?!\d)")


def pdf_text(data) -> str:
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            return "\n".join((page.extract_text() or "") for page in pdf.pages)
    except Exception as e:
        raise ParseFailed(f"pdf unreadable: {e}") from e


def _last_line(s):
    lines = [ln for ln in s.split("\n") if ln.strip()]
    return lines[-1] if lines else ""


def _first_line(s):
    for ln in s.split("\n"):
        if ln.strip():
            return ln
    return ""


def _window_fields(before, after):
    line = _last_line(before)
    # a name wrapped onto the line above the identifier
    if not any(is_name_like(r.group(0)) for r in _NAME_RUN_RX.finditer(line)):
        line = before
    name = None
    name_pos = len(line)
    for m in _NAME_RUN_RX.finditer(line):
        run = clean(m.group(0)).strip(" ,")
        if is_name_like(run):
            name, name_pos = run, m.start()
    head = line[:name_pos]
    record = None
    record_pos = len(head)
    for m in _RECORD_RUN_RX.finditer(head):
        record, record_pos = m.group(0), m.start()
    qno = None
    for m in _SEQ_RUN_RX.finditer(head[:record_pos]):
        qno = m.group(0)
    fee = None
    m = _FEE_RX.search(_first_line(after))
    if m:
        fee = parse_amount(m.group(0))
    return qno, record, name, fee


def candidates_from_text(text, source_tag="pdf", table=DEFAULT_TABLE):
    """Recover one candidate per identifier from a flat text stream."""
    text = strip_obstruction_text(text, table)
    hits = find_all_nrics(text)
    out = []
    for k, (nric, start, end) in enumerate(hits):
        lower = hits[k - 1][2] if k > 0 else 0
        upper = hits[k + 1][1] if k + 1 < len(hits) else len(text)
        before = text[lower:start]
        after = text[end:upper]
        qno, record, name, fee = _window_fields(before, after)
        snippet = clean(f"{_last_line(before)} {nric} {_first_line(after)}")
        out.append(ExtractionCandidate(
            text=snippet,
            source_tag=source_tag,
            nric=nric,
            patient_name=normalize_patient_name(name) or None,
            qno=qno,
            record_no=record,
            fee=fee,
        ))
    return out


def extract_pdf(data, table=DEFAULT_TABLE, source_tag="pdf"):
    return candidates_from_text(pdf_text(data), source_tag, table)
