from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PortalSelectors:
    """
    Scheduling portals change their login markup over time (and sit behind bot-protection networks).
    Keep all UI selectors/text hooks here for easy maintenance.

    Candidate tuples are ordered by priority: stable ids first, generic type-based matches last.
    """

    # Login
    username_candidates: tuple[str, ...] = (
        "input#signInName",
        "input#username",
        "input#email",
        'input[name="signInName"]',
        'input[name="username"]',
        'input[name="email"]',
        'input[autocomplete="username"]',
        'input[placeholder*="email" i]',
        'input[placeholder*="user" i]',
        'input[placeholder*="login" i]',
        'input[type="email"]',
        'input[type="text"]',
    )
    password_candidates: tuple[str, ...] = (
        "input#password",
        'input[name="password"]',
        'input[autocomplete="current-password"]',
        'input[type="password"]',
    )
    submit_candidates: tuple[str, ...] = (
        "button#continue",
        "button#next",
        'button[type="submit"]',
        'input[type="submit"]',
    )
    # Fallback when no submit selector matches: any button-like element whose text contains one of these.
    submit_button_like: str = 'button, input[type="button"], input[type="submit"], [role="button"], a'
    submit_text_hints: tuple[str, ...] = ("sign", "login", "next", "continue")

    # Bot-verification interstitials (Cloudflare, AWS WAF, ...). Matched case-insensitively.
    challenge_content_markers: tuple[str, ...] = (
        "just a moment",
        "checking your browser",
        "attention required",
        "verify you are human",
        "verifying you are human",
        "needs to review the security of your connection",
        "cf-browser-verification",
        "cf-challenge",
        # Challenge-only path; the bare "challenge-platform" also matches the bot-detection script
        # (/cdn-cgi/challenge-platform/scripts/jsd/main.js) Cloudflare injects into normal pages.
        "/cdn-cgi/challenge-platform/h/",
        "_cf_chl_opt",
        "cf-turnstile",
        "ddos protection by cloudflare",
        "awswafintegration",
    )
    challenge_url_markers: tuple[str, ...] = ("/cdn-cgi/challenge-platform", "__cf_chl")

    # Invalid-credential wording seen after a rejected login (only consulted with verify_login).
    login_error_patterns: tuple[str, ...] = (
        r"(invalid|incorrect).{0,40}(user\s*name|e-?mail|password|sign-?in name)",
        r"we\s+can'?t\s+seem\s+to\s+find\s+your\s+account",
        r"account\s+(is\s+)?locked|too\s+many\s+attempts",
    )
