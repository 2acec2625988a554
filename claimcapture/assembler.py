import re
import time
from dataclasses import replace
from pathlib import Path

from .config import resolve_config, signature_table
from .errors import DownloadFailed, FormatUndetected, ParseFailed
from .extractors import extract_for_kind, extract_visit
from .identifiers import find_nric
from .logs import StepLogger, log
from .models import ObstructionState, RecordBuilder, Validation
from .obstruction import ObstructionClearer
from .report_source import detect_formats
from .scoring import select_best
from .signatures import strip_obstruction_text
from .validation import (
    clean_claim_amount,
    clean_items,
    validate_claim_detail,
    validate_queue_item,
    validate_referral_clinic,
)

PENDING = Validation(False, ("pending",))

_QUEUE_FIELDS = (
    ("nric", "nric"),
    ("patient_name", "patient_name"),
    ("qno", "qno"),
    ("record_no", "record_no"),
    ("fee", "fee_amount"),
    ("pay_type", "pay_type"),
    ("visit_type", "visit_type"),
    ("status", "status"),
)
_INT_RX = re.compile(r"\d+")


class ClaimAssembler:
    def __init__(self, driver, cfg=None):
        self.driver = driver
        self.cfg = resolve_config(cfg)
        self.table = signature_table(self.cfg)
        self.last_clear = None
        self.last_kind = None

    def _screenshot(self, name):
        out_dir = self.cfg.get("screenshot_dir")
        if not out_dir:
            return None
        path = Path(out_dir).expanduser() / f"{name}_{time.strftime('%Y%m%d_%H%M%S')}.png"
        try:
            self.driver.screenshot(str(path))
            log(f"Saved {path}")
            return path
        except Exception as e:
            log(f"[WARN] screenshot failed: {e}")
            return None

    def clear_blocking_obstruction(self):
        clearer = ObstructionClearer(
            self.driver,
            self.table,
            max_cycles=self.cfg.get("obstruction_max_cycles"),
            settle_ms=self.cfg.get("obstruction_settle_ms"),
        )
        result = clearer.clear()
        self.last_clear = result
        if result.state == ObstructionState.UNKNOWN:
            return True
        if result.state == ObstructionState.DISMISSED:
            log(f"[obstruction] dismissed {result.signature!r} after {result.cycles} cycle(s): {list(result.attempts)}")
            return True
        log(f"[obstruction] BLOCKED by {result.signature!r}; continuing degraded ({len(result.attempts)} attempts)")
        self._screenshot("obstruction_blocked")
        return False

    def _queue_item(self, cand):
        b = RecordBuilder()
        for attr, field in _QUEUE_FIELDS:
            b.set(field, getattr(cand, attr), cand.source_tag)
        draft = b.build(PENDING)
        return replace(draft, validation=validate_queue_item(draft))

    def extract_queue_list_results(self):
        steps = StepLogger("QUEUE", total=4)
        steps.step(1, "Clearing blocking overlays")
        self.clear_blocking_obstruction()

        steps.step(2, "Detecting report formats", signatures=self.table.version)
        kinds = detect_formats(self.driver, self.cfg, self.table)
        if not kinds:
            steps.note("No report format detected")
            self._screenshot("format_undetected")
            return []
        steps.note("Formats present: " + ", ".join(k.value for k in kinds))

        candidates = []
        self.last_kind = None
        for i, kind in enumerate(kinds, start=1):
            steps.step(3, f"Extracting via {kind.value}", attempt=f"{i}/{len(kinds)}")
            if i > 1:
                self.clear_blocking_obstruction()
            try:
                candidates = extract_for_kind(self.driver, kind, self.cfg, self.table)
            except (DownloadFailed, ParseFailed, FormatUndetected) as e:
                steps.note(f"{kind.value} failed: {e}")
                candidates = []
                continue
            except Exception as e:
                steps.note(f"{kind.value} raised {type(e).__name__}: {e}; falling back")
                self._screenshot(f"extract_{kind.value}_error")
                candidates = []
                continue
            if candidates:
                self.last_kind = kind
                break
            steps.note(f"{kind.value} yielded no rows; falling back")

        steps.step(4, "Validating rows", rows=len(candidates))
        items = [self._queue_item(c) for c in candidates]
        invalid = sum(1 for it in items if not it.validation.is_valid)
        if invalid:
            steps.note(f"{invalid}/{len(items)} rows failed validation")
        return items

    def _best(self, cands):
        return select_best(cands, self.cfg.get("min_accept_score", 8), self.table)

    def extract_claim_details_from_current_visit(self):
        steps = StepLogger("VISIT", total=5)
        steps.step(1, "Clearing blocking overlays")
        self.clear_blocking_obstruction()

        steps.step(2, "Collecting visit candidates")
        found = extract_visit(self.driver, self.cfg, self.table)

        steps.step(3, "Selecting best free text")
        b = RecordBuilder()
        diag = self._best(found.get("diagnosis", []))
        notes = self._best(found.get("notes", []))
        if diag:
            b.set("diagnosis_text", diag.text, diag.source_tag)
        if notes:
            b.set("notes_text", notes.text, notes.source_tag)
            if not diag:
                b.set("diagnosis_text", notes.text, f"{notes.source_tag}>diagnosis")
        steps.note(f"diagnosis={'yes' if b.has('diagnosis_text') else 'no'} notes={'yes' if notes else 'no'}")

        steps.step(4, "Merging structured fields")
        self._merge_structured(b, found)

        steps.step(5, "Validating claim detail")
        draft = b.build(PENDING)
        record = replace(draft, validation=validate_claim_detail(draft, self.table))
        if not record.validation.is_valid:
            steps.note(f"Validation issues: {list(record.validation.errors)}")
            self._screenshot("visit_invalid")
        return record

    def _merge_structured(self, b, found):
        for cand in found.get("nric", []):
            if b.set("nric", cand.nric, cand.source_tag):
                break
        if not b.has("nric"):
            try:
                page = strip_obstruction_text(self.driver.page_text(), self.table)
            except Exception:
                page = ""
            hit = find_nric(page)
            if hit:
                b.set("nric", hit[0], f"visit:page-text:{hit[1]}")
        for cand in found.get("patient_name", []):
            if b.set("patient_name", cand.patient_name, cand.source_tag):
                break
        for cand in found.get("fee", []):
            if b.set("fee_amount", clean_claim_amount(cand.fee), cand.source_tag):
                break
        for cand in found.get("referral_clinic", []):
            if validate_referral_clinic(cand.text, self.table).is_valid:
                b.set("referral_clinic", cand.text, cand.source_tag)
                break
        for cand in found.get("mc_days", []):
            m = _INT_RX.search(cand.text)
            if m:
                b.set("mc_days", int(m.group(0)), cand.source_tag)
                break
        if not b.has("mc_days"):
            b.set("mc_days", 0, "default")
        items = found.get("items", [])
        cleaned = clean_items([c.text for c in items])
        if cleaned:
            b.set("items", cleaned, items[0].source_tag)
