from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .selectors import PortalSelectors


@dataclass(frozen=True)
class ChallengeVerdict:
    is_challenge: bool
    reason: Optional[str] = None


def classify(
    page_content: Optional[str],
    current_url: Optional[str] = "",
    *,
    selectors: Optional[PortalSelectors] = None,
) -> ChallengeVerdict:
    """
    Heuristic detection of bot-verification interstitials (Cloudflare "Just a moment...", AWS WAF, etc.).

    This is a textual best-effort check: false negatives are expected (the caller then fails later with
    FormNotFound), but it must never raise.
    """
    sel = selectors or PortalSelectors()

    url = (current_url or "").lower()
    for marker in sel.challenge_url_markers:
        if marker.lower() in url:
            return ChallengeVerdict(is_challenge=True, reason=f"url contains {marker!r}")

    text = (page_content or "").lower()
    if not text:
        return ChallengeVerdict(is_challenge=False)

    for marker in sel.challenge_content_markers:
        if marker.lower() in text:
            return ChallengeVerdict(is_challenge=True, reason=f"content contains {marker!r}")

    return ChallengeVerdict(is_challenge=False)


def snippet_of(page_content: Optional[str], limit: int = 500) -> str:
    """
    Collapse whitespace and truncate page content for inclusion in error payloads/logs.
    """
    s = " ".join((page_content or "").split())
    if limit > 0 and len(s) > limit:
        return s[:limit] + "..."
    return s
