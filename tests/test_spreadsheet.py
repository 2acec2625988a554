import io

import pytest
import xlwt

from claimcapture.errors import ParseFailed
from claimcapture.extractors.spreadsheet import extract_spreadsheet, read_rows
from fakes import truncated_worksheets

TITLE_ROWS = [
    ["Clinic Assist"],
    ["Queue Listing Report"],
    ["Date: 01/10/2026"],
    [],
    [],
    [],
    [],
    [],
    [],
    [],
]


def test_header_near_row_eleven(workbook_bytes):
    data = workbook_bytes(TITLE_ROWS + [
        ["PCNO", "NAME", "NRIC", "CONTRACT", "TOTAL"],
        [78025, "TAG AVIVA - TAN MEI LING", "S1234567D", "AVIVA", 120],
        [78026, "LIM AH KOW", "s 7654321 b", "MHC", 45.5],
        [None, None, None, "Grand Total", 165.5],
    ])
    cands = extract_spreadsheet(data)
    assert [c.nric for c in cands] == ["S1234567D", "S7654321B"]
    first = cands[0]
    assert first.record_no == "78025"
    assert first.patient_name == "TAN MEI LING"
    assert first.contract == "AVIVA"
    assert first.fee == 120.0
    assert cands[1].fee == 45.5
    assert all(c.source_tag == "spreadsheet" for c in cands)


def test_headerless_sheet_uses_positions(workbook_bytes):
    data = workbook_bytes([["7", "88213", "TAN, MEI LING", "196.20"]])
    [cand] = extract_spreadsheet(data)
    assert (cand.qno, cand.record_no, cand.patient_name, cand.fee) == ("7", "88213", "TAN, MEI LING", 196.2)


def test_partial_header_completed_by_position(workbook_bytes):
    data = workbook_bytes([
        ["NRIC", "Patient Name", "", ""],
        ["S1234567D", "Jane Tan", "4", "45.50"],
    ])
    [cand] = extract_spreadsheet(data)
    assert cand.qno == "4"
    assert cand.fee == 45.5


def test_csv_export():
    data = b"QNo,Name,NRIC,Fee\r\n3,Jane Tan,S1234567D,45.50\r\n"
    [cand] = extract_spreadsheet(data)
    assert (cand.qno, cand.patient_name, cand.nric, cand.fee) == ("3", "Jane Tan", "S1234567D", 45.5)


def test_unreadable_legacy_xls_is_parse_failed():
    with pytest.raises(ParseFailed):
        read_rows(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64)


def test_corrupt_zip_is_parse_failed():
    with pytest.raises(ParseFailed):
        read_rows(b"PK\x03\x04 truncated")


def test_empty_download_is_parse_failed():
    with pytest.raises(ParseFailed):
        read_rows(b"")


def _xls_bytes(rows):
    book = xlwt.Workbook()
    sheet = book.add_sheet("Queue Listing")
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is not None:
                sheet.write(r, c, value)
    buf = io.BytesIO()
    book.save(buf)
    return buf.getvalue()


def test_legacy_xls_export():
    data = _xls_bytes(TITLE_ROWS + [
        ["PCNO", "NAME", "NRIC", "TOTAL"],
        [78026, "LIM AH KOW", "S7654321B", 45.5],
        [None, None, "Grand Total", 45.5],
    ])
    [cand] = extract_spreadsheet(data)
    assert cand.nric == "S7654321B"
    assert cand.record_no == "78026"
    assert cand.patient_name == "LIM AH KOW"
    assert cand.fee == 45.5


def test_truncated_worksheet_is_parse_failed(workbook_bytes):
    data = truncated_worksheets(workbook_bytes([
        ["QNo", "Name", "NRIC", "Fee"],
        ["3", "Jane Tan", "S1234567D", "45.50"],
    ]))
    with pytest.raises(ParseFailed):
        extract_spreadsheet(data)
