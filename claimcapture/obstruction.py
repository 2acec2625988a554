from dataclasses import dataclass
from typing import Optional, Tuple

from .driver import SYNTHETIC_CLICK_JS
from .models import ObstructionState, SelectorStrategy
from .resolver import click_with_fallback, resolve_visible
from .signatures import DEFAULT_TABLE

MAX_CYCLES = 5
SETTLE_MS = 300

CANCEL_BUTTON = SelectorStrategy("Cancel button", (
    "button:text-is('Cancel')",
    "input[type='button'][value='Cancel']",
    "input[type='submit'][value='Cancel']",
    "a.btn:text-is('Cancel')",
))

CLOSE_AFFORDANCE = SelectorStrategy("close affordance", (
    "button:text-is('×')",
    "[aria-label*='close' i]",
    "button:text-is('Close')",
    ".ui-dialog-titlebar-close",
    ".modal .close",
    ".btn-close",
))

# Every element whose own text or value is exactly Cancel, visible or not.
ANY_CANCEL = "xpath=//*[normalize-space(text())='Cancel' or @value='Cancel']"

BACKDROP_PATTERNS = (
    ".modal-backdrop",
    ".ui-widget-overlay",
    ".blockUI.blockOverlay",
    "[class*='overlay' i]",
)


@dataclass(frozen=True)
class ClearResult:
    state: ObstructionState
    cycles: int = 0
    attempts: Tuple[str, ...] = ()
    signature: Optional[str] = None

    @property
    def cleared(self):
        return self.state in (ObstructionState.UNKNOWN, ObstructionState.DISMISSED)


class ObstructionClearer:
    """One clearing attempt. Create a new instance per extraction call."""

    def __init__(self, driver, table=None, max_cycles=None, settle_ms=None):
        self.driver = driver
        self.table = table or DEFAULT_TABLE
        self.max_cycles = max_cycles or MAX_CYCLES
        self.settle_ms = SETTLE_MS if settle_ms is None else settle_ms
        self.state = ObstructionState.UNKNOWN
        self.attempts = []
        self.signature = None

    def detect(self):
        try:
            text = self.driver.page_text()
        except Exception:
            text = ""
        return self.table.obstruction_match(text)

    def _settle(self):
        if self.settle_ms:
            try:
                self.driver.wait(self.settle_ms)
            except Exception:
                pass

    def _click_strategy(self, strat):
        hit = resolve_visible(self.driver, strat, attempts=1, poll_ms=0)
        if not hit:
            return False
        ok, _ = click_with_fallback(self.driver, hit.ref)
        return ok

    def _cancel_button(self):
        return self._click_strategy(CANCEL_BUTTON)

    def _close_affordance(self):
        return self._click_strategy(CLOSE_AFFORDANCE)

    def _escape(self):
        try:
            self.driver.press("Escape")
            return True
        except Exception:
            return False

    def _synthetic_cancel(self):
        fired = False
        for ref in self.driver.query(ANY_CANCEL):
            try:
                self.driver.evaluate_on(ref, SYNTHETIC_CLICK_JS)
                fired = True
            except Exception:
                continue
        return fired

    def _backdrop(self):
        for pat in BACKDROP_PATTERNS:
            for ref in self.driver.query(pat):
                if not self.driver.is_visible(ref):
                    continue
                try:
                    self.driver.click(ref, force=True)
                    return True
                except Exception:
                    continue
        return False

    def _geometry_cancel(self):
        for ref in self.driver.query(ANY_CANCEL):
            try:
                if (self.driver.text_content(ref) or "").strip() not in ("Cancel", ""):
                    continue
                box = self.driver.bounding_box(ref)
            except Exception:
                continue
            if not box or box.get("width", 0) <= 0 or box.get("height", 0) <= 0:
                continue
            try:
                self.driver.mouse_click(box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)
                return True
            except Exception:
                continue
        return False

    def strategies(self):
        return (
            ("cancel_button", self._cancel_button),
            ("close_affordance", self._close_affordance),
            ("escape", self._escape),
            ("synthetic_cancel", self._synthetic_cancel),
            ("backdrop", self._backdrop),
        )

    def _result(self, cycles):
        return ClearResult(self.state, cycles, tuple(self.attempts), self.signature)

    def clear(self):
        self.signature = self.detect()
        if not self.signature:
            return self._result(0)
        self.state = ObstructionState.DETECTED
        for cycle in range(1, self.max_cycles + 1):
            for name, fn in self.strategies():
                if not fn():
                    continue
                self.state = ObstructionState.DISMISS_ATTEMPTED
                self.attempts.append(f"{cycle}:{name}")
                self._settle()
                if not self.detect():
                    self.state = ObstructionState.DISMISSED
                    return self._result(cycle)
        if self._geometry_cancel():
            self.attempts.append("final:geometry_cancel")
            self._settle()
            if not self.detect():
                self.state = ObstructionState.DISMISSED
                return self._result(self.max_cycles)
        self.state = ObstructionState.BLOCKED
        return self._result(self.max_cycles)
