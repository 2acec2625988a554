from .config import DEFAULTS, signature_table
from .extractors.exports import has_affordance
from .extractors.frames import frame_nesting
from .extractors.grid import find_grid_rows, has_keyword_table
from .models import ReportSourceKind


def format_priority(cfg=None):
    names = (cfg or {}).get("format_priority") or DEFAULTS["format_priority"]
    order = []
    for name in names:
        kind = name if isinstance(name, ReportSourceKind) else ReportSourceKind(str(name).lower())
        if kind != ReportSourceKind.NONE and kind not in order:
            order.append(kind)
    return order


def _present(driver, cfg, table):
    present = set()
    _, rows = find_grid_rows(driver)
    if rows:
        present.add(ReportSourceKind.GRID)
    if has_keyword_table(driver, table):
        present.add(ReportSourceKind.TABLE)
    depth = frame_nesting(driver, cfg)
    if depth == 2:
        present.add(ReportSourceKind.NESTED_EMBEDDED_FRAME)
    elif depth == 1:
        present.add(ReportSourceKind.EMBEDDED_FRAME)
    if has_affordance(driver, ReportSourceKind.SPREADSHEET_EXPORT, table):
        present.add(ReportSourceKind.SPREADSHEET_EXPORT)
    if has_affordance(driver, ReportSourceKind.PDF_DOCUMENT, table):
        present.add(ReportSourceKind.PDF_DOCUMENT)
    return present


def detect_formats(driver, cfg=None, table=None):
    """Every report format on the page, highest fidelity first."""
    table = table or signature_table(cfg)
    present = _present(driver, cfg, table)
    return [k for k in format_priority(cfg) if k in present]


def detect_format(driver, cfg=None, table=None):
    kinds = detect_formats(driver, cfg, table)
    return kinds[0] if kinds else ReportSourceKind.NONE
