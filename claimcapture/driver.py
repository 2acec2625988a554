"""Thin adapter over a Playwright ``Page`` or ``Frame``.

Everything above this module talks to the document only through
``PlaywrightDriver``; element refs are Playwright locators and are never
kept across navigation.
"""
from pathlib import Path

from playwright.sync_api import Error as PWError, TimeoutError as PWTimeout

from .models import FrameAccess

SYNTHETIC_CLICK_JS = """
e => {
    const opts = {bubbles: true, cancelable: true, view: window};
    for (const t of ['pointerdown', 'mousedown', 'pointerup', 'mouseup', 'click']) {
        const ev = t.startsWith('pointer') ? new PointerEvent(t, opts) : new MouseEvent(t, opts);
        e.dispatchEvent(ev);
    }
}
"""

SET_VALUE_JS = """
(el, value) => {
    el.value = value;
    el.dispatchEvent(new Event('input', {bubbles: true}));
    el.dispatchEvent(new Event('change', {bubbles: true}));
}
"""

_VISIBLE_JS = """
e => {
    const s = getComputedStyle(e);
    if (s.display === 'none' || s.visibility === 'hidden') return false;
    const r = e.getBoundingClientRect();
    return r.width > 0 && r.height > 0;
}
"""

_READ_VALUE_JS = """
e => {
    const tag = (e.tagName || '').toLowerCase();
    if (tag === 'select') {
        const o = e.options[e.selectedIndex];
        return o ? (o.text || o.value || '') : '';
    }
    if (tag === 'input' || tag === 'textarea') return e.value || '';
    return e.innerText || e.textContent || '';
}
"""

_CELL_TEXTS_JS = "row => Array.from(row.querySelectorAll('th,td')).map(c => (c.innerText || c.textContent || '').trim())"
_CELL_ATTRS_JS = "(row, name) => Array.from(row.querySelectorAll('th,td')).map(c => c.getAttribute(name))"


class PlaywrightDriver:
    def __init__(self, ctx, page=None):
        self.ctx = ctx
        self.page = page or getattr(ctx, "page", None) or ctx
        self.dialog_messages = []

    def query(self, pattern, within=None):
        root = within if within is not None else self.ctx
        try:
            loc = root.locator(pattern)
            return [loc.nth(i) for i in range(loc.count())]
        except PWError:
            return []

    def is_visible(self, ref):
        try:
            if not ref.is_visible():
                return False
            return bool(ref.evaluate(_VISIBLE_JS))
        except PWError:
            return False

    def bounding_box(self, ref):
        try:
            return ref.bounding_box()
        except PWError:
            return None

    def click(self, ref, force=False):
        try:
            ref.scroll_into_view_if_needed(timeout=1500)
        except PWError:
            pass
        ref.click(timeout=3000, force=force)

    def fill(self, ref, value):
        ref.click(timeout=3000)
        ref.fill(value, timeout=3000)

    def text_content(self, ref):
        try:
            return ref.inner_text(timeout=2000) or ""
        except PWError:
            try:
                return ref.evaluate("n => n.textContent || ''") or ""
            except PWError:
                return ""

    def page_text(self):
        try:
            return self.ctx.locator("body").inner_text(timeout=2000) or ""
        except PWError:
            return ""

    def read_value(self, ref):
        try:
            return ref.evaluate(_READ_VALUE_JS) or ""
        except PWError:
            return self.text_content(ref)

    def get_attribute(self, ref, name):
        try:
            return ref.get_attribute(name, timeout=1000)
        except PWError:
            return None

    def cell_texts(self, row):
        try:
            return list(row.evaluate(_CELL_TEXTS_JS) or [])
        except PWError:
            return []

    def cell_attributes(self, row, name):
        try:
            return list(row.evaluate(_CELL_ATTRS_JS, name) or [])
        except PWError:
            return []

    def evaluate(self, js, arg=None):
        return self.ctx.evaluate(js, arg)

    def evaluate_on(self, ref, js, arg=None):
        return ref.evaluate(js, arg)

    def press(self, key):
        self.page.keyboard.press(key)

    def mouse_click(self, x, y):
        self.page.mouse.click(x, y)

    def scroll_into_view(self, ref):
        try:
            ref.scroll_into_view_if_needed(timeout=500)
        except PWError:
            pass

    def wheel(self, dy):
        self.page.mouse.wheel(0, dy)

    def wait(self, ms):
        self.ctx.wait_for_timeout(ms)

    def wait_for_load(self):
        try:
            self.ctx.wait_for_load_state("networkidle", timeout=15000)
        except PWTimeout:
            pass

    def screenshot(self, path):
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.page.screenshot(path=str(path), full_page=True)

    def frame(self, patterns):
        last = None
        for pat in patterns:
            try:
                owner = self.ctx.locator(pat).first
                if not owner.count():
                    continue
                handle = owner.element_handle(timeout=2000)
                child = handle.content_frame() if handle else None
                if child is None:
                    last = f"{pat}: no content frame"
                    continue
                return FrameAccess(PlaywrightDriver(child, page=self.page))
            except PWError as e:
                # cross-origin or detached frames land here
                last = f"{pat}: {e}"
        return FrameAccess(None, last or "no matching frame")

    def download(self, ref, timeout_ms=30000):
        with self.page.expect_download(timeout=timeout_ms) as info:
            ref.click(timeout=3000)
        dl = info.value
        path = dl.path()
        return Path(path).read_bytes()

    def select_option(self, ref, label):
        ref.select_option(label=label, timeout=3000)

    def install_dialog_guard(self):
        def _on_dialog(dialog):
            self.dialog_messages.append(dialog.message)
            try:
                dialog.dismiss()
            except PWError:
                pass
        self.page.on("dialog", _on_dialog)
        return self.dialog_messages
