"""Row-to-candidate conversion shared by every tabular format.

Grids, plain tables, report frames and spreadsheet exports all reduce to a
list of cell-text rows; this module maps their columns to roles and turns
each data row into an ``ExtractionCandidate``.
"""
from ..identifiers import find_nric, normalize_patient_name
from ..models import ExtractionCandidate
from ..signatures import DEFAULT_TABLE, strip_obstruction_text
from ..text import (
    cell_str,
    clean,
    is_blank_row,
    is_decimal_amount,
    is_name_like,
    is_record_number,
    is_sequence_number,
    parse_amount,
)

HEADER_SCAN_ROWS = 15


def _roles_in_label(label, table):
    label = clean(label)
    if not label:
        return []
    return [role for role, rxs in table.header_rxs if any(rx.search(label) for rx in rxs)]


def header_role_count(cells, table=DEFAULT_TABLE):
    roles = set()
    for c in cells:
        roles.update(_roles_in_label(cell_str(c), table))
    return len(roles)


def looks_like_header(cells, table=DEFAULT_TABLE):
    if any(find_nric(cell_str(c)) for c in cells):
        return False
    return header_role_count(cells, table) >= 2


def map_header(labels, table=DEFAULT_TABLE):
    """Map column roles to indices; each column is claimed at most once."""
    labels = [clean(cell_str(l)) for l in labels]
    mapping = {}
    taken = set()
    for role, rxs in table.header_rxs:
        for i, label in enumerate(labels):
            if i in taken or not label:
                continue
            if any(rx.search(label) for rx in rxs):
                mapping[role] = i
                taken.add(i)
                break
    return mapping


def header_is_reliable(mapping):
    return len(mapping) >= 2 and ("patient_name" in mapping or "nric" in mapping)


def infer_positions(cells, taken=()):
    """Guess column roles from the shape of one data row."""
    cells = [cell_str(c) for c in cells]
    taken = set(taken)
    roles = {}
    for i, c in enumerate(cells):
        if i not in taken and find_nric(c):
            roles["nric"] = i
            taken.add(i)
            break

    def first_after(start, test):
        for i in range(start, len(cells)):
            if i not in taken and test(cells[i]):
                return i
        return None

    cursor = 0
    for role, test in (
        ("qno", is_sequence_number),
        ("record_no", is_record_number),
        ("patient_name", is_name_like),
        ("fee", is_decimal_amount),
    ):
        i = first_after(cursor, test)
        if i is None:
            continue
        roles[role] = i
        taken.add(i)
        cursor = i + 1
    return roles


def complete_mapping(mapping, sample_row):
    if sample_row is None:
        return dict(mapping)
    out = dict(mapping)
    guessed = infer_positions(sample_row, taken=set(mapping.values()))
    for role, i in guessed.items():
        out.setdefault(role, i)
    return out


def is_summary_row(cells, table=DEFAULT_TABLE):
    joined = " ".join(cell_str(c) for c in cells)
    if not joined.strip():
        return True
    if find_nric(joined):
        return False
    return any(rx.search(joined) for rx in table.summary_rxs)


def is_numeric_only_row(cells):
    values = [cell_str(c) for c in cells if cell_str(c)]
    return bool(values) and all(parse_amount(v) is not None and not any(ch.isalpha() for ch in v.replace("S$", ""))
                                for v in values)


def _cell(cells, mapping, role):
    i = mapping.get(role)
    if i is None or i >= len(cells):
        return ""
    return cell_str(cells[i])


def row_to_candidate(cells, mapping, source_tag, table=DEFAULT_TABLE):
    cells = list(cells)
    if is_blank_row(cells) or is_summary_row(cells, table):
        return None
    text = strip_obstruction_text(" | ".join(cell_str(c) for c in cells if cell_str(c)), table)
    if not text:
        return None

    nric = None
    raw_nric = _cell(cells, mapping, "nric")
    hit = find_nric(raw_nric) if raw_nric else None
    if not hit:
        hit = find_nric(" ".join(cell_str(c) for c in cells))
    if hit:
        nric = hit[0]

    name = normalize_patient_name(_cell(cells, mapping, "patient_name")) or None
    fee = parse_amount(_cell(cells, mapping, "fee")) if _cell(cells, mapping, "fee") else None
    return ExtractionCandidate(
        text=text,
        source_tag=source_tag,
        nric=nric,
        patient_name=name,
        qno=_cell(cells, mapping, "qno") or None,
        record_no=_cell(cells, mapping, "record_no") or None,
        fee=fee,
        pay_type=_cell(cells, mapping, "pay_type") or None,
        visit_type=_cell(cells, mapping, "visit_type") or None,
        status=_cell(cells, mapping, "status") or None,
        in_time=_cell(cells, mapping, "in_time") or None,
        out_time=_cell(cells, mapping, "out_time") or None,
        contract=_cell(cells, mapping, "contract") or None,
    )


def find_header_row(rows, table=DEFAULT_TABLE, limit=HEADER_SCAN_ROWS):
    for i, cells in enumerate(rows[:limit]):
        if looks_like_header(cells, table):
            return i
    return None


def _first_data_row(rows, table):
    for cells in rows:
        if not is_blank_row(cells) and not is_summary_row(cells, table) and not is_numeric_only_row(cells):
            return cells
    return None


def candidates_from_rows(rows, source_tag, table=DEFAULT_TABLE, header=None):
    """Turn cell rows into candidates.

    ``header`` may carry labels read separately from the body (jqGrid keeps
    its header in another table); otherwise the header row is searched for
    among the first rows.
    """
    rows = [list(r) for r in rows or []]
    mapping = {}
    body = rows
    if header:
        mapping = map_header(header, table)
    else:
        idx = find_header_row(rows, table)
        if idx is not None:
            mapping = map_header(rows[idx], table)
            body = rows[idx + 1:]
    if not header_is_reliable(mapping):
        mapping = {k: v for k, v in mapping.items() if k not in ("qno", "record_no", "patient_name", "fee", "nric")}
    mapping = complete_mapping(mapping, _first_data_row(body, table))
    out = []
    for cells in body:
        if is_numeric_only_row(cells):
            continue
        cand = row_to_candidate(cells, mapping, source_tag, table)
        if cand is not None:
            out.append(cand)
    return out
