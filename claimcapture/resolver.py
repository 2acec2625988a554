from .driver import SET_VALUE_JS
from .errors import ActionFailed, NotFound
from .models import Resolved, SelectorStrategy

DEFAULT_ATTEMPTS = 3
DEFAULT_POLL_MS = 250


def _as_strategies(strategies):
    if isinstance(strategies, SelectorStrategy):
        return [strategies]
    return list(strategies)


def _scan_once(driver, strategies):
    for strat in strategies:
        for pat in strat.patterns:
            try:
                refs = driver.query(pat)
            except Exception:
                continue
            for ref in refs:
                try:
                    if driver.is_visible(ref):
                        return Resolved(ref, pat, strat.label)
                except Exception:
                    continue
    return None


def resolve_visible(driver, strategies, attempts=None, poll_ms=None):
    strategies = _as_strategies(strategies)
    attempts = max(1, attempts or DEFAULT_ATTEMPTS)
    poll_ms = DEFAULT_POLL_MS if poll_ms is None else poll_ms
    for i in range(attempts):
        hit = _scan_once(driver, strategies)
        if hit:
            return hit
        if i < attempts - 1 and poll_ms:
            driver.wait(poll_ms)
    return None


def require_visible(driver, strategies, attempts=None, poll_ms=None):
    strategies = _as_strategies(strategies)
    hit = resolve_visible(driver, strategies, attempts, poll_ms)
    if hit is None:
        label = " / ".join(s.label for s in strategies)
        patterns = [p for s in strategies for p in s.patterns]
        raise NotFound(label, patterns)
    return hit


def click_with_fallback(driver, ref):
    last = None
    for force in (False, True):
        try:
            driver.click(ref, force=force)
            return True, None
        except Exception as e:
            last = e
    return False, last


def fill_with_fallback(driver, ref, value):
    last = None
    try:
        driver.fill(ref, value)
        return True, None
    except Exception as e:
        last = e
    try:
        driver.evaluate_on(ref, SET_VALUE_JS, value)
        return True, None
    except Exception as e:
        last = e
    return False, last


def resolve_and_act(driver, strategies, action, value=None, required=False,
                    attempts=None, poll_ms=None):
    strategies = _as_strategies(strategies)
    label = " / ".join(s.label for s in strategies)
    if action not in ("click", "fill"):
        raise ValueError(f"unknown action {action!r}")
    hit = resolve_visible(driver, strategies, attempts, poll_ms)
    if hit is None:
        if required:
            raise ActionFailed(label, action, NotFound(label, [p for s in strategies for p in s.patterns]))
        return False
    if action == "click":
        ok, err = click_with_fallback(driver, hit.ref)
    else:
        ok, err = fill_with_fallback(driver, hit.ref, "" if value is None else str(value))
    if not ok and required:
        raise ActionFailed(hit.label, action, err)
    return ok
