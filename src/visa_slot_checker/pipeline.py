from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from .config import AppConfig
from .models import SlotCheckFailure, SlotCheckRequest, SlotCheckSuccess
from .portal.browser import open_portal_page
from .portal.debug import save_debug
from .portal.errors import ErrorKind, PortalError
from .portal.fetcher import SlotFetcher
from .portal.selectors import PortalSelectors
from .portal.session import PortalCredentials, SessionAcquirer
from .slots import normalize_slots


logger = logging.getLogger(__name__)

PageFactory = Callable[[AppConfig], AbstractContextManager[Any]]
SlotCheckResult = Union[SlotCheckSuccess, SlotCheckFailure]


def check_slots(
    request: SlotCheckRequest,
    *,
    config: Optional[AppConfig] = None,
    page_factory: PageFactory = open_portal_page,
    selectors: Optional[PortalSelectors] = None,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> SlotCheckResult:
    """
    Log in, fetch the schedule entries for `request.appd`, and normalize them.

    Exactly one browsing context is opened per call and it is released on every exit path. Failures are
    returned as `SlotCheckFailure` values (never raised); nothing is retried.
    """
    cfg = config or AppConfig()
    creds = PortalCredentials(username=request.username, password=request.password)
    acquirer = SessionAcquirer(
        portal=cfg.portal,
        timeouts=cfg.timeouts,
        selectors=selectors,
        verify_login=cfg.verify_login,
        snippet_chars=cfg.debug.snippet_chars,
    )
    fetcher = SlotFetcher(cfg.portal)

    try:
        with page_factory(cfg) as page:
            try:
                acquirer.acquire(page, creds)
                logger.info("Credentials submitted; fetching schedule entries.")
                resp = fetcher.fetch(page, request.appd)
                resp.raise_for_status()
                raw = resp.json()
            except PortalError as e:
                if cfg.debug.save_on_failure:
                    save_debug(page, debug_dir=cfg.debug.debug_dir, name_prefix=e.kind.value)
                raise
    except PortalError as e:
        logger.error("Slot check failed: %s (%s)", e.kind.value, e.message)
        return SlotCheckFailure.from_error(e)
    except Exception as e:
        logger.exception("Slot check failed unexpectedly.")
        return SlotCheckFailure(error_kind=ErrorKind.UNKNOWN_FAILURE, message=str(e) or type(e).__name__)

    slots = normalize_slots(raw)
    logger.info("Found %d slot(s).", len(slots))
    return SlotCheckSuccess(slots=slots, checked_at=clock())
