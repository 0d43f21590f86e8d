from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from playwright.sync_api import Page, sync_playwright

from ..config import AppConfig


logger = logging.getLogger(__name__)

# Flags carried over from the portal's known-good launch profile.
_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
]


@contextmanager
def open_portal_page(config: AppConfig) -> Iterator[Page]:
    """
    Single-use browsing context for one pipeline run. The context and browser are always closed on exit.
    """
    bcfg = config.browser
    args = list(_LAUNCH_ARGS) + [f"--window-size={bcfg.viewport_width},{bcfg.viewport_height}"]
    args += list(bcfg.extra_args)

    with sync_playwright() as p:
        launch_kwargs: dict = {"headless": bcfg.headless, "args": args}
        if bcfg.channel:
            launch_kwargs["channel"] = bcfg.channel
        try:
            browser = p.chromium.launch(**launch_kwargs)
        except Exception as e:
            msg = str(e)
            if bcfg.channel or "Executable doesn't exist" not in msg:
                raise

            logger.warning(
                "Playwright Chromium executable missing; falling back to system browser channel. (%s)",
                msg,
            )
            # Try Chrome first, then Edge.
            try:
                browser = p.chromium.launch(**launch_kwargs, channel="chrome")
            except Exception:
                browser = p.chromium.launch(**launch_kwargs, channel="msedge")

        try:
            ctx = browser.new_context(
                viewport={"width": bcfg.viewport_width, "height": bcfg.viewport_height},
                user_agent=bcfg.user_agent,
                locale=bcfg.locale,
            )
            try:
                page = ctx.new_page()
                # Bounded defaults for any wait that doesn't pass an explicit timeout.
                page.set_default_timeout(config.timeouts.selector_timeout_ms)
                page.set_default_navigation_timeout(config.timeouts.navigation_timeout_ms)
                yield page
            finally:
                ctx.close()
        finally:
            browser.close()
            logger.debug("Browsing context released.")
