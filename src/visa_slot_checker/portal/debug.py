from __future__ import annotations

import logging
import re
import time
from pathlib import Path


logger = logging.getLogger(__name__)


def save_debug(page, *, debug_dir: str, name_prefix: str) -> Path | None:
    """
    Best-effort capture of screenshot + HTML + body text for offline diagnosis of a failed run.

    Returns the directory written to, or None if nothing could be saved.
    """
    safe = re.sub(r"[^a-zA-Z0-9_-]+", "_", name_prefix).strip("_")[:60] or "failure"
    prefix = f"{time.strftime('%Y%m%d_%H%M%S')}_{safe}"
    try:
        out_dir = Path(debug_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        page.screenshot(path=str(out_dir / f"{prefix}.png"), full_page=True)
        (out_dir / f"{prefix}.html").write_text(page.content(), encoding="utf-8")
        # Rendered text is often enough to tell a challenge page from a layout change.
        try:
            (out_dir / f"{prefix}.txt").write_text(page.inner_text("body"), encoding="utf-8")
        except Exception:
            pass
        return out_dir
    except Exception:
        logger.debug("Failed to save debug artifacts.", exc_info=True)
        return None
