from ..errors import FormatUndetected
from ..models import ReportSourceKind
from ..signatures import DEFAULT_TABLE
from .exports import download_export
from .frames import extract_frames
from .grid import extract_grid, extract_table
from .pdf import extract_pdf
from .spreadsheet import extract_spreadsheet
from .visit import extract_visit


def extract_for_kind(driver, kind, cfg=None, table=DEFAULT_TABLE):
    if kind == ReportSourceKind.GRID:
        return extract_grid(driver, cfg, table)
    if kind == ReportSourceKind.TABLE:
        return extract_table(driver, cfg, table)
    if kind in (ReportSourceKind.EMBEDDED_FRAME, ReportSourceKind.NESTED_EMBEDDED_FRAME):
        return extract_frames(driver, kind, cfg, table)
    if kind == ReportSourceKind.SPREADSHEET_EXPORT:
        return extract_spreadsheet(download_export(driver, kind, cfg, table), table)
    if kind == ReportSourceKind.PDF_DOCUMENT:
        return extract_pdf(download_export(driver, kind, cfg, table), table)
    raise FormatUndetected(f"no extractor for {kind}")


__all__ = ["extract_for_kind", "extract_visit"]
