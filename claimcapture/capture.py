import json
import sys
from pathlib import Path

from playwright.sync_api import sync_playwright

from .assembler import ClaimAssembler
from .config import load_config
from .driver import PlaywrightDriver
from .logs import log

MODES = ("queue", "visit")


def run(cfg, mode="queue"):
    if mode not in MODES:
        raise ValueError(f"mode must be one of {MODES}, got {mode!r}")
    if not cfg.get("report_url"):
        raise ValueError("config needs report_url")
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=cfg.get("headless", True))
        state = cfg.get("storage_state")
        context = browser.new_context(storage_state=str(Path(state).expanduser()) if state else None)
        page = context.new_page()
        driver = PlaywrightDriver(page)
        driver.install_dialog_guard()
        try:
            log(f"Navigating to report: {cfg['report_url']}")
            page.goto(cfg["report_url"], wait_until="load")
            driver.wait_for_load()
            assembler = ClaimAssembler(driver, cfg)
            if mode == "queue":
                records = assembler.extract_queue_list_results()
                payload = [r.to_dict() for r in records]
            else:
                payload = assembler.extract_claim_details_from_current_visit().to_dict()
            if driver.dialog_messages:
                log(f"[dialog] dismissed: {driver.dialog_messages}")
            return payload
        except Exception:
            try:
                page.screenshot(path="debug_capture_failure.png", full_page=True)
                log("Saved debug_capture_failure.png")
            except Exception:
                pass
            raise
        finally:
            browser.close()


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv or len(argv) > 2:
        print("Usage: python -m claimcapture <config.yaml> [queue|visit]")
        return 2
    cfg = load_config(argv[0])
    mode = argv[1] if len(argv) > 1 else "queue"
    payload = run(cfg, mode)
    out_path = Path(cfg.get("output_path") or "claims.json").expanduser()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    count = len(payload) if isinstance(payload, list) else 1
    log(f"Wrote {count} record(s) to {out_path}")
    return 0
