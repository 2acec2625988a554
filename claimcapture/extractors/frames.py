from ..logs import log
from ..models import FrameAccess, ReportSourceKind
from ..signatures import DEFAULT_TABLE
from .grid import extract_tabular
from .pdf import candidates_from_text

REPORT_FRAME_PATTERNS = (
    "iframe[src*='ReportViewer' i]",
    "iframe[src*='queueListing' i]",
    "iframe[id*='ReportViewer' i]",
    "iframe[name*='report' i]",
)
NESTED_FRAME_PATTERNS = ("iframe", "frame")


class FrameHandle:
    """A frame reached through a chain of owner patterns.

    Re-resolved on every ``open()`` so a reloaded report never leaves a
    stale document behind.
    """

    def __init__(self, driver, patterns, parent=None):
        self.driver = driver
        self.patterns = tuple(patterns)
        self.parent = parent

    def child(self, patterns):
        return FrameHandle(self.driver, patterns, parent=self)

    def _open_once(self):
        if self.parent is None:
            base = self.driver
        else:
            acc = self.parent._open_once()
            if not acc.ok:
                return acc
            base = acc.document
        try:
            return base.frame(self.patterns)
        except Exception as e:
            return FrameAccess(None, str(e))

    def open(self, attempts=1, poll_ms=0):
        acc = FrameAccess(None, "not attempted")
        for i in range(max(1, attempts)):
            acc = self._open_once()
            if acc.ok:
                return acc
            if i < attempts - 1 and poll_ms:
                self.driver.wait(poll_ms)
        return acc


def report_frame(driver, cfg=None):
    cfg = cfg or {}
    return FrameHandle(driver, cfg.get("report_frame_patterns") or REPORT_FRAME_PATTERNS)


def frame_nesting(driver, cfg=None):
    """0 when no report frame, 1 for a single frame, 2 when it holds another."""
    outer = report_frame(driver, cfg)
    if not outer.open().ok:
        return 0
    return 2 if outer.child(NESTED_FRAME_PATTERNS).open().ok else 1


def _extract_document(doc, tag, cfg, table):
    found = extract_tabular(doc, cfg, table, source_prefix=f"{tag}:")
    if found:
        return found, tag
    try:
        text = doc.page_text()
    except Exception:
        text = ""
    return candidates_from_text(text, f"{tag}:text", table), f"{tag} text"


def extract_frames(driver, kind, cfg=None, table=DEFAULT_TABLE):
    cfg = cfg or {}
    attempts = cfg.get("frame_wait_attempts", 10)
    poll_ms = cfg.get("frame_poll_ms", 500)
    handle = report_frame(driver, cfg)
    tag = "frame"
    if kind == ReportSourceKind.NESTED_EMBEDDED_FRAME:
        handle = handle.child(NESTED_FRAME_PATTERNS)
        tag = "nested_frame"
    for i in range(max(1, attempts)):
        acc = handle.open()
        if not acc.ok:
            log(f"[frame] {tag} not accessible yet ({acc.error})")
        else:
            # a report viewer can reload or detach mid-read; re-resolve next poll
            try:
                found, where = _extract_document(acc.document, tag, cfg, table)
            except Exception as e:
                log(f"[frame] {tag} extraction failed: {type(e).__name__}: {e}")
                found = []
            if found:
                log(f"[frame] {len(found)} rows from {where} after {i + 1} poll(s)")
                return found
        if i < attempts - 1:
            driver.wait(poll_ms)
    log(f"[frame] {tag} yielded nothing after {attempts} polls")
    return []
