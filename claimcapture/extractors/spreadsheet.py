import csv
import io

import xlrd
from openpyxl import load_workbook

from ..errors import ParseFailed
from ..logs import log
from ..signatures import DEFAULT_TABLE
from ..text import cell_str
from .rows import candidates_from_rows, find_header_row

_OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _xlsx_rows(data):
    # read_only sheets parse lazily, so row iteration can fail as well
    try:
        wb = load_workbook(io.BytesIO(data), data_only=True, read_only=True)
    except Exception as e:
        raise ParseFailed(f"workbook unreadable: {e}") from e
    try:
        if not wb.worksheets:
            raise ParseFailed("workbook has no sheets")
        ws = wb.worksheets[0]
        return [[cell_str(v) for v in row] for row in ws.iter_rows(values_only=True)]
    except ParseFailed:
        raise
    except Exception as e:
        raise ParseFailed(f"worksheet unreadable: {e}") from e
    finally:
        wb.close()


def _xls_rows(data):
    try:
        book = xlrd.open_workbook(file_contents=data)
        if not book.nsheets:
            raise ParseFailed("workbook has no sheets")
        sheet = book.sheet_by_index(0)
        return [[cell_str(v) for v in sheet.row_values(r)] for r in range(sheet.nrows)]
    except ParseFailed:
        raise
    except Exception as e:
        raise ParseFailed(f"legacy workbook unreadable: {e}") from e


def _csv_rows(data):
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = data.decode("latin-1")
    if "\x00" in text:
        raise ParseFailed("export is binary, not a workbook or CSV")
    sample = text[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;\t|")
    except csv.Error:
        dialect = csv.excel
    return [[cell_str(c) for c in row] for row in csv.reader(io.StringIO(text), dialect)]


def read_rows(data):
    if not data:
        raise ParseFailed("empty export")
    if data[:8] == _OLE_MAGIC:
        return _xls_rows(data)
    if data[:2] == b"PK":
        return _xlsx_rows(data)
    return _csv_rows(data)


def extract_spreadsheet(data, table=DEFAULT_TABLE, source_tag="spreadsheet"):
    rows = read_rows(data)
    header_idx = find_header_row(rows, table)
    if header_idx is None:
        log("[xlsx] no header row found; mapping columns by position")
    else:
        log(f"[xlsx] header row {header_idx + 1}: {[c for c in rows[header_idx] if c]}")
    return candidates_from_rows(rows, source_tag, table)
