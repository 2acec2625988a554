from claimcapture.extractors.frames import (
    NESTED_FRAME_PATTERNS,
    REPORT_FRAME_PATTERNS,
    FrameHandle,
    extract_frames,
)
from claimcapture.extractors.grid import GRID_ROW_PATTERNS
from claimcapture.models import ReportSourceKind as K
from fakes import FakeDriver, Node


def _table(*rows):
    return Node("table", children=[Node("tr", cells=r) for r in rows])


def test_nested_frame_table_is_extracted(fast_cfg):
    inner = FakeDriver([_table(["QNo", "Name", "NRIC", "Fee"], ["5", "Lim Ah Kow", "S2345678H", "18.00"])])
    outer = FakeDriver(frames={NESTED_FRAME_PATTERNS[0]: inner})
    d = FakeDriver(frames={REPORT_FRAME_PATTERNS[0]: outer})
    [cand] = extract_frames(d, K.NESTED_EMBEDDED_FRAME, fast_cfg)
    assert cand.nric == "S2345678H"
    assert cand.source_tag == "nested_frame:table"


def test_frame_content_arriving_late_is_polled(fast_cfg):
    doc = FakeDriver()
    polls = []

    def open_frame():
        polls.append(1)
        if len(polls) == 2:
            doc.add(_table(["QNo", "Name", "NRIC"], ["1", "Jane Tan", "S1234567D"]))
        return doc
    d = FakeDriver(frames={REPORT_FRAME_PATTERNS[0]: open_frame})
    cands = extract_frames(d, K.EMBEDDED_FRAME, dict(fast_cfg, frame_wait_attempts=3))
    assert [c.nric for c in cands] == ["S1234567D"]
    assert len(polls) == 2


def test_text_only_report_viewer_falls_back_to_text_windows(fast_cfg):
    doc = FakeDriver(text="Queue Listing\n1 88213 TAN, MEI LING S1234567D 196.20\n")
    d = FakeDriver(frames={REPORT_FRAME_PATTERNS[0]: doc})
    [cand] = extract_frames(d, K.EMBEDDED_FRAME, fast_cfg)
    assert (cand.qno, cand.record_no, cand.patient_name, cand.fee) == ("1", "88213", "TAN, MEI LING", 196.2)
    assert cand.source_tag == "frame:text"


def test_inaccessible_frame_degrades_to_empty(fast_cfg):
    d = FakeDriver(frames={REPORT_FRAME_PATTERNS[0]: "Blocked a frame with origin"})
    assert extract_frames(d, K.EMBEDDED_FRAME, fast_cfg) == []
    assert len(d.waits) == fast_cfg["frame_wait_attempts"] - 1


def test_frame_handle_reports_missing_parent():
    handle = FrameHandle(FakeDriver(), REPORT_FRAME_PATTERNS).child(NESTED_FRAME_PATTERNS)
    acc = handle.open(attempts=2, poll_ms=0)
    assert not acc.ok
    assert acc.error == "no matching frame"


class _DetachingFrame(FakeDriver):
    def wait(self, ms):
        raise RuntimeError("Frame was detached")


def _detaching_grid():
    return _DetachingFrame([Node(GRID_ROW_PATTERNS[0], cells=["1", "Jane Tan", "S1234567D"])])


def test_frame_detached_mid_read_degrades_to_empty(fast_cfg):
    d = FakeDriver(frames={REPORT_FRAME_PATTERNS[0]: _detaching_grid})
    assert extract_frames(d, K.EMBEDDED_FRAME, fast_cfg) == []
    assert len(d.waits) == fast_cfg["frame_wait_attempts"] - 1


def test_frame_reloaded_after_detach_is_read_on_next_poll(fast_cfg):
    reloaded = FakeDriver([_table(["QNo", "Name", "NRIC"], ["1", "Jane Tan", "S1234567D"])])
    docs = [_detaching_grid(), reloaded]
    d = FakeDriver(frames={REPORT_FRAME_PATTERNS[0]: lambda: docs.pop(0)})
    [cand] = extract_frames(d, K.EMBEDDED_FRAME, fast_cfg)
    assert cand.nric == "S1234567D"
    assert cand.source_tag == "frame:table"
