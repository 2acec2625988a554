from claimcapture.extractors.grid import (
    GRID_HEADER_PATTERNS,
    GRID_ROW_PATTERNS,
    TABLE_PATTERNS,
    TABLE_ROW_PATTERN,
    extract_grid,
    extract_table,
    pick_table,
)
from fakes import FakeDriver, Node

ROW = GRID_ROW_PATTERNS[0]
SUFFIXES = ["QNo", "Status", "PatientName", "NRIC", "PayType", "VisitType", "Fee", "In", "Out"]


def _grid_row(cells):
    return Node(ROW, cells=cells, cell_attrs={"aria-describedby": [f"queueLogGrid_{s}" for s in SUFFIXES]})


def _table(*rows, matches=("table",)):
    return Node(*matches, children=[Node(TABLE_ROW_PATTERN, cells=r) for r in rows])


def test_grid_columns_mapped_by_describedby_suffix(fast_cfg):
    d = FakeDriver([
        _grid_row(["1", "Seen", "TAN AH KOW", "S1234567D", "AVIVA", "Consult", "35.00", "09:01", "09:20"]),
        _grid_row(["2", "Waiting", "Jane Tan", "t7654321b", "CASH", "Consult", "", "09:15", ""]),
    ])
    cands = extract_grid(d, fast_cfg)
    assert [c.nric for c in cands] == ["S1234567D", "T7654321B"]
    first = cands[0]
    assert (first.qno, first.status, first.patient_name) == ("1", "Seen", "TAN AH KOW")
    assert (first.pay_type, first.visit_type, first.fee) == ("AVIVA", "Consult", 35.0)
    assert (first.in_time, first.out_time) == ("09:01", "09:20")
    assert cands[1].fee is None
    assert all(c.source_tag == "grid" for c in cands)


def test_grid_scrolls_until_row_count_stagnates(fast_cfg):
    rows = [_grid_row(["1", "Seen", "TAN AH KOW", "S1234567D", "AVIVA", "Consult", "35.00", "", ""])]
    d = FakeDriver(rows)
    pending = [
        _grid_row(["2", "Seen", "LIM BOON HUAT", "S2345678H", "CASH", "Consult", "20.00", "", ""]),
        _grid_row(["3", "Seen", "NG MEI MEI", "T3456789J", "CASH", "Consult", "25.00", "", ""]),
    ]

    def load_more():
        if pending:
            d.add(pending.pop(0))
    d.on_wheel = load_more
    cands = extract_grid(d, fast_cfg)
    assert [c.qno for c in cands] == ["1", "2", "3"]
    assert sum(1 for c in d.calls if c[0] == "wheel") <= fast_cfg["scroll_max_passes"]


def test_grid_falls_back_to_header_labels():
    header = [Node(GRID_HEADER_PATTERNS[0], text=t) for t in ("Q No", "Patient Name", "NRIC", "Fee")]
    row = Node(ROW, cells=["4", "Jane Tan", "S1234567D", "12.00"])
    d = FakeDriver(header + [row])
    [cand] = extract_grid(d, {"scroll_max_passes": 2, "scroll_wait_ms": 0})
    assert (cand.qno, cand.patient_name, cand.fee) == ("4", "Jane Tan", 12.0)


def test_no_grid_means_no_candidates(fast_cfg):
    assert extract_grid(FakeDriver(), fast_cfg) == []


def test_best_table_chosen_by_header_keywords():
    login = _table(["User ID", "Password"], ["", ""])
    attachments = _table(["File Name", "Patient Name", "NRIC"], ["scan.pdf", "Jane Tan", "S1234567D"])
    queue = _table(["QNo", "Name", "NRIC", "Fee"], ["3", "Jane Tan", "S1234567D", "45.50"])
    d = FakeDriver([login, attachments, queue])
    ref, rows = pick_table(d)
    assert ref is queue
    [cand] = extract_table(d)
    assert (cand.qno, cand.nric, cand.fee) == ("3", "S1234567D", 45.5)
    assert cand.source_tag == "table"


def test_qno_table_pattern_is_preferred():
    plain = _table(["NRIC", "Name"], ["S1234567D", "Jane Tan"], ["S2345678H", "Lim Ah Kow"])
    queue = _table(["QNo", "Name", "NRIC"], ["1", "Ng Mei Mei", "T3456789J"], matches=TABLE_PATTERNS)
    d = FakeDriver([plain, queue])
    ref, _ = pick_table(d)
    assert ref is queue
