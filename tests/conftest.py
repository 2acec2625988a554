import io

import pytest
from openpyxl import Workbook

from fakes import FakeDriver


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def fast_cfg():
    return {
        "resolver_attempts": 1,
        "resolver_poll_ms": 0,
        "obstruction_settle_ms": 0,
        "frame_wait_attempts": 2,
        "frame_poll_ms": 0,
        "scroll_max_passes": 10,
        "scroll_stagnant_passes": 2,
        "scroll_wait_ms": 0,
        "download_attempts": 2,
    }


@pytest.fixture
def workbook_bytes():
    def build(rows):
        wb = Workbook()
        ws = wb.active
        for row in rows:
            ws.append(list(row))
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()
    return build
