from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional, Protocol

from .selectors import PortalSelectors


logger = logging.getLogger(__name__)


class FieldRole(str, Enum):
    USERNAME = "username"
    PASSWORD = "password"
    SUBMIT = "submit"


class QueryablePage(Protocol):
    """
    The subset of Playwright's `Page`/`Frame` the locator needs. Test doubles implement just this.
    """

    def query_selector_all(self, selector: str) -> list[Any]: ...


class FieldLocator:
    """
    Find login-form controls by trying an ordered list of candidate selectors per role.

    The first visible match of the highest-priority candidate wins; `None` means nothing matched and
    the caller decides whether that is fatal.
    """

    def __init__(self, selectors: Optional[PortalSelectors] = None) -> None:
        self.selectors = selectors or PortalSelectors()

    def candidates(self, role: FieldRole | str) -> tuple[str, ...]:
        role = FieldRole(role)
        if role is FieldRole.USERNAME:
            return self.selectors.username_candidates
        if role is FieldRole.PASSWORD:
            return self.selectors.password_candidates
        return self.selectors.submit_candidates

    def locate(self, page: QueryablePage, role: FieldRole | str) -> Optional[Any]:
        role = FieldRole(role)
        for selector in self.candidates(role):
            el = self._first_visible(page, selector)
            if el is not None:
                logger.debug("Located %s field via %s", role.value, selector)
                return el

        if role is FieldRole.SUBMIT:
            return self._submit_by_text(page)
        return None

    def locate_all(self, page: QueryablePage) -> dict[str, Optional[Any]]:
        return {role.value: self.locate(page, role) for role in FieldRole}

    def _submit_by_text(self, page: QueryablePage) -> Optional[Any]:
        hints = tuple(h.lower() for h in self.selectors.submit_text_hints)
        for el in self._query(page, self.selectors.submit_button_like):
            label = _element_label(el).lower()
            if label and any(h in label for h in hints) and _is_visible(el):
                logger.debug("Located submit control by text: %r", label[:40])
                return el
        return None

    def _first_visible(self, page: QueryablePage, selector: str) -> Optional[Any]:
        # Some portals render hidden template inputs; only a visible match counts.
        for el in self._query(page, selector)[:25]:
            if _is_visible(el):
                return el
        return None

    @staticmethod
    def _query(page: QueryablePage, selector: str) -> list[Any]:
        try:
            return list(page.query_selector_all(selector) or [])
        except Exception:
            logger.debug("Selector query failed: %s", selector, exc_info=True)
            return []


def _is_visible(el: Any) -> bool:
    try:
        return bool(el.is_visible())
    except Exception:
        return False


def _element_label(el: Any) -> str:
    parts: list[str] = []
    try:
        parts.append(el.inner_text() or "")
    except Exception:
        pass
    for attr in ("value", "aria-label"):
        try:
            parts.append(el.get_attribute(attr) or "")
        except Exception:
            continue
    return " ".join(p.strip() for p in parts if p and p.strip())
