from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import urlencode

from ..config import PortalConfig
from .errors import FetchError


logger = logging.getLogger(__name__)

# Runs inside the page so the request carries the browsing context's cookies/origin.
_FETCH_JS = """
async ({ url, method }) => {
  const res = await fetch(url, {
    method,
    credentials: 'include',
    headers: { 'Accept': 'application/json' },
  });
  const body = await res.text();
  return { status: res.status, ok: res.ok, body };
}
"""

_STATUS_MESSAGES = {
    400: "Portal rejected the request (check the application reference).",
    401: "Portal rejected the session (login failed or session expired).",
    403: "Portal rejected the session (login failed or session expired).",
    404: "Application reference not recognized by the portal.",
}


@dataclass(frozen=True)
class FetchResponse:
    url: str
    status: int
    ok: bool
    body: str = ""

    def raise_for_status(self) -> None:
        if self.ok:
            return
        message = _STATUS_MESSAGES.get(self.status, f"Portal returned HTTP {self.status}.")
        raise FetchError(message, http_status=self.status, body=self.body)

    def json(self) -> Any:
        try:
            return json.loads(self.body)
        except ValueError as e:
            # A 200 with HTML usually means we were bounced back to a login/challenge page.
            raise FetchError(
                "Portal returned a non-JSON response (session is likely not authenticated).",
                http_status=self.status,
                body=self.body[:2000],
            ) from e


def build_slots_url(portal: PortalConfig, appd: str, *, now_ms: Optional[int] = None) -> str:
    """
    `{base}{slots_api_path}?appd=<appd>&cacheString=<epoch ms>` (cacheString busts intermediary caches).
    """
    token = now_ms if now_ms is not None else int(time.time() * 1000)
    query = urlencode({"appd": appd, "cacheString": str(token)})
    return f"{portal.slots_api_url}?{query}"


class SlotFetcher:
    def __init__(self, portal: PortalConfig, *, clock_ms: Optional[Callable[[], int]] = None) -> None:
        self.portal = portal
        self._clock_ms = clock_ms

    def fetch(self, page, appd: str) -> FetchResponse:
        """
        Issue the schedule-entries request from within `page`. Non-2xx responses are returned, not raised.
        """
        now_ms = self._clock_ms() if self._clock_ms else None
        url = build_slots_url(self.portal, appd, now_ms=now_ms)
        logger.info("Requesting schedule entries (%s %s)", self.portal.slots_api_method, self.portal.slots_api_path)

        result = page.evaluate(_FETCH_JS, {"url": url, "method": self.portal.slots_api_method}) or {}
        status = int(result.get("status") or 0)
        resp = FetchResponse(
            url=url,
            status=status,
            ok=bool(result.get("ok")),
            body=str(result.get("body") or ""),
        )
        if not resp.ok:
            logger.warning("Schedule entries request failed with HTTP %s", status)
        return resp
