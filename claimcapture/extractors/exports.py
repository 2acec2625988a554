import re

from ..errors import DownloadFailed
from ..logs import log
from ..models import ReportSourceKind, SelectorStrategy
from ..resolver import resolve_visible
from ..signatures import DEFAULT_TABLE
from ..text import clean

FORMAT_SELECT_PATTERNS = (
    "select[id*='Format' i]",
    "select[name*='format' i]",
    "select[title*='export' i]",
)
EXPORT_BUTTON = SelectorStrategy("export button", (
    "a:text-is('Export')",
    "input[type='button'][value='Export']",
    "input[type='submit'][value='Export']",
    "button:text-is('Export')",
    "a[title='Export']",
))
_OPTION_RXS = {
    ReportSourceKind.SPREADSHEET_EXPORT: re.compile(r"excel|xlsx|\bcsv\b", re.I),
    ReportSourceKind.PDF_DOCUMENT: re.compile(r"\bpdf\b|acrobat", re.I),
}


def _patterns(kind, table):
    if kind == ReportSourceKind.SPREADSHEET_EXPORT:
        return table.spreadsheet_exports
    if kind == ReportSourceKind.PDF_DOCUMENT:
        return table.pdf_exports
    raise ValueError(f"{kind} has no export affordance")


def _format_option(driver, kind):
    rx = _OPTION_RXS[kind]
    for pat in FORMAT_SELECT_PATTERNS:
        for sel in driver.query(pat):
            for opt in driver.query("option", within=sel):
                label = clean(driver.text_content(opt))
                if label and rx.search(label):
                    return sel, label
    return None, None


def has_affordance(driver, kind, table=DEFAULT_TABLE):
    for pat in _patterns(kind, table):
        if driver.query(pat):
            return True
    sel, _ = _format_option(driver, kind)
    return sel is not None


def _direct_link(driver, kind, table):
    hit = resolve_visible(driver, SelectorStrategy(f"{kind.value} link", _patterns(kind, table)),
                          attempts=1, poll_ms=0)
    return hit.ref if hit else None


def _via_format_select(driver, kind, timeout_ms, cfg):
    sel, label = _format_option(driver, kind)
    if sel is None:
        return None
    driver.select_option(sel, label)
    # the viewer re-renders its toolbar after a format change
    hit = resolve_visible(driver, EXPORT_BUTTON, attempts=cfg.get("resolver_attempts"),
                          poll_ms=cfg.get("resolver_poll_ms"))
    if not hit:
        raise DownloadFailed(f"format {label!r} selected but no export button")
    return driver.download(hit.ref, timeout_ms)


def download_export(driver, kind, cfg=None, table=DEFAULT_TABLE):
    cfg = cfg or {}
    attempts = max(1, cfg.get("download_attempts", 2))
    timeout_ms = cfg.get("download_timeout_ms", 30000)
    last = None
    for attempt in range(1, attempts + 1):
        try:
            ref = _direct_link(driver, kind, table)
            data = driver.download(ref, timeout_ms) if ref is not None else _via_format_select(driver, kind, timeout_ms, cfg)
            if data:
                log(f"[export] {kind.value} downloaded ({len(data)} bytes, attempt {attempt})")
                return data
            last = "no export affordance" if data is None else "empty download"
        except Exception as e:
            last = e
        log(f"[export] {kind.value} attempt {attempt}/{attempts} failed: {last}")
        if attempt < attempts:
            driver.wait(500)
    raise DownloadFailed(f"{kind.value} export failed after {attempts} attempts: {last}")
