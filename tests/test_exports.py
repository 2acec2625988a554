import pytest

from claimcapture.errors import DownloadFailed
from claimcapture.extractors.exports import EXPORT_BUTTON, FORMAT_SELECT_PATTERNS, download_export
from claimcapture.models import ReportSourceKind as K
from claimcapture.signatures import SPREADSHEET_EXPORT_PATTERNS
from fakes import FakeDriver, Node


def test_direct_export_link(fast_cfg):
    link = Node(SPREADSHEET_EXPORT_PATTERNS[0], download=b"PK..")
    d = FakeDriver([link])
    assert download_export(d, K.SPREADSHEET_EXPORT, fast_cfg) == b"PK.."


def test_report_viewer_select_then_export(fast_cfg):
    select = Node(FORMAT_SELECT_PATTERNS[0], children=[
        Node("option", text="Select a format"),
        Node("option", text="XML file with report data"),
        Node("option", text="Excel"),
    ])
    export = Node(EXPORT_BUTTON.patterns[0], download=b"xlsx-bytes")
    d = FakeDriver([select, export])
    assert download_export(d, K.SPREADSHEET_EXPORT, fast_cfg) == b"xlsx-bytes"
    assert select.value == "Excel"


def test_retries_then_raises(fast_cfg):
    link = Node(SPREADSHEET_EXPORT_PATTERNS[0], download=RuntimeError("Timeout 30000ms exceeded"))
    d = FakeDriver([link])
    with pytest.raises(DownloadFailed):
        download_export(d, K.SPREADSHEET_EXPORT, dict(fast_cfg, download_attempts=3))
    assert sum(1 for c in d.calls if c[0] == "download") == 3


def test_no_affordance_raises():
    with pytest.raises(DownloadFailed):
        download_export(FakeDriver(), K.PDF_DOCUMENT, {"download_attempts": 1})


class _SlowToolbarDriver(FakeDriver):
    def __init__(self, nodes, late):
        super().__init__(nodes)
        self.late = late

    def wait(self, ms):
        super().wait(ms)
        self.late.visible = True


def test_export_button_rendered_after_format_change_is_awaited(fast_cfg):
    select = Node(FORMAT_SELECT_PATTERNS[0], children=[Node("option", text="PDF")])
    export = Node(EXPORT_BUTTON.patterns[0], download=b"%PDF-1.4", visible=False)
    d = _SlowToolbarDriver([select, export], export)
    cfg = dict(fast_cfg, download_attempts=1, resolver_attempts=3, resolver_poll_ms=40)
    assert download_export(d, K.PDF_DOCUMENT, cfg) == b"%PDF-1.4"
    assert d.waits == [40]
