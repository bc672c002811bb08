"""Tree access over a live Playwright page (sync API)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from playwright.sync_api import ElementHandle, Error as PlaywrightError, Page

from .tree import SelectorSyntaxError

logger = logging.getLogger(__name__)

_ATTRIBUTES_SCRIPT = """
(el) => {
    const output = {};
    for (const name of el.getAttributeNames()) {
        output[name] = el.getAttribute(name) || "";
    }
    return output;
}
"""

_SET_VALUE_SCRIPT = """
(el, value) => {
    if (el.tagName === "SELECT") {
        for (const option of el.options) {
            option.selected = option.value === value;
        }
    } else {
        el.value = value;
    }
    el.dispatchEvent(new Event("input", { bubbles: true }));
    el.dispatchEvent(new Event("change", { bubbles: true }));
}
"""


class PlaywrightTree:
    """Adapter exposing a Playwright :class:`Page` through :class:`TreeAccess`.

    The page itself is the document scope; element handles are the elements.
    """

    def __init__(self, page: Page) -> None:
        self.page = page

    @property
    def root(self) -> Page:
        return self.page

    def select(self, selector: str, scope: Any = None) -> List[ElementHandle]:
        base = self.page if scope is None else scope
        try:
            return list(base.query_selector_all(selector))
        except PlaywrightError as exc:
            raise SelectorSyntaxError(selector, str(exc)) from exc

    def tag(self, element: ElementHandle) -> str:
        return str(element.evaluate("el => el.tagName.toLowerCase()"))

    def attribute(self, element: ElementHandle, name: str) -> Optional[str]:
        return element.get_attribute(name)

    def attributes(self, element: ElementHandle) -> Dict[str, str]:
        payload = element.evaluate(_ATTRIBUTES_SCRIPT) or {}
        return {str(key): str(value) for key, value in payload.items()}

    def classes(self, element: ElementHandle) -> List[str]:
        return (element.get_attribute("class") or "").split()

    def field_type(self, element: ElementHandle) -> Optional[str]:
        value = element.evaluate("el => (typeof el.type === 'string' && el.type) ? el.type : null")
        return str(value).lower() if value else None

    def is_required(self, element: ElementHandle) -> bool:
        return bool(element.evaluate("el => !!el.required"))

    def text(self, element: ElementHandle) -> str:
        return str(element.evaluate("el => el.textContent || ''"))

    def _element_or_none(self, element: ElementHandle, script: str, arg: Any = None) -> Optional[ElementHandle]:
        handle = element.evaluate_handle(script, arg)
        found = handle.as_element()
        if found is None:
            handle.dispose()
        return found

    def parent(self, element: ElementHandle) -> Optional[ElementHandle]:
        return self._element_or_none(element, "el => el.parentElement")

    def closest(self, element: ElementHandle, tag: str) -> Optional[ElementHandle]:
        return self._element_or_none(element, "(el, tag) => el.closest(tag)", tag)

    def children(self, element: ElementHandle) -> List[ElementHandle]:
        handle = element.evaluate_handle("el => Array.from(el.children)")
        try:
            children = []
            for child in handle.get_properties().values():
                as_element = child.as_element()
                if as_element is not None:
                    children.append(as_element)
            return children
        finally:
            handle.dispose()

    def previous_sibling(self, element: ElementHandle) -> Optional[ElementHandle]:
        return self._element_or_none(element, "el => el.previousElementSibling")

    def document(self, element: ElementHandle) -> Page:
        return self.page

    def same(self, first: ElementHandle, second: ElementHandle) -> bool:
        if first is second:
            return True
        return bool(first.evaluate("(a, b) => a === b", second))

    def value(self, element: ElementHandle) -> str:
        return str(element.evaluate("el => el.value || ''"))

    def set_value(self, element: ElementHandle, value: str) -> None:
        element.evaluate(_SET_VALUE_SCRIPT, value)

    def has_class(self, element: ElementHandle, name: str) -> bool:
        return name in self.classes(element)

    def add_class(self, element: ElementHandle, name: str) -> None:
        element.evaluate("(el, name) => el.classList.add(name)", name)

    def set_data(self, element: ElementHandle, key: str, value: str) -> None:
        element.evaluate("(el, [key, value]) => el.setAttribute('data-' + key, value)", [key, value])

    def release(self, element: ElementHandle) -> None:
        """Dispose a handle returned by a query or navigation call.

        Handles otherwise stay alive in the page until it closes.
        """

        try:
            element.dispose()
        except PlaywrightError as exc:
            logger.debug("Could not dispose element handle: %s", exc)
