from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from .config import load_config
from .logging_config import configure_logging
from .models import SlotCheckRequest
from .pipeline import check_slots
from .portal.challenge import classify, snippet_of
from .portal.errors import ErrorKind
from .slots import normalize_slots


logger = logging.getLogger("visa_slot_checker")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_INPUT = 2


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="visa_slot_checker")
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    check = sub.add_parser("check-slots", help="Log into the scheduling portal and print available appointment slots")
    check.add_argument("--config", default="config.yaml", help="Path to YAML config (default: config.yaml)")
    check.add_argument("--appd", default="", help="Application reference (default: $PORTAL_APPD)")
    check.add_argument("--username", default="", help="Portal username (default: $PORTAL_USERNAME)")
    check.add_argument(
        "--password",
        default="",
        help="Portal password (default: $PORTAL_PASSWORD). Prefer the env var; argv is visible to other users.",
    )
    check.add_argument("--headful", action="store_true", help="Run browser headful (debug)")
    check.add_argument("--verify-login", action="store_true", help="Check the login succeeded before fetching slots")
    check.add_argument("--out", default="", help="Optional output JSON path (otherwise prints to stdout)")

    page = sub.add_parser(
        "classify-page",
        help="Run the bot-challenge detector on a saved HTML snapshot (e.g. from data/debug/*.html)",
    )
    page.add_argument("file", help="Path to an HTML file")
    page.add_argument("--url", default="", help="URL the snapshot was taken at (optional)")

    norm = sub.add_parser(
        "normalize",
        help="Normalize a saved schedule-entries JSON response into slot records (no browser, no secrets)",
    )
    norm.add_argument("file", help="Path to a JSON file")
    norm.add_argument("--out", default="", help="Optional output JSON path (otherwise prints to stdout)")

    return p


def _read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise SystemExit(f"File not found: {p}")
    return p.read_text(encoding="utf-8", errors="replace")


def _emit(payload: dict, out: str = "") -> None:
    out_json = json.dumps(payload, indent=2, sort_keys=False)
    if out:
        Path(out).write_text(out_json, encoding="utf-8")
    else:
        print(out_json)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    if args.cmd == "check-slots":
        return _cmd_check_slots(args)

    if args.cmd == "classify-page":
        verdict = classify(_read_text(args.file), args.url)
        _emit({"isChallenge": verdict.is_challenge, "reason": verdict.reason})
        return EXIT_OK

    if args.cmd == "normalize":
        try:
            raw = json.loads(_read_text(args.file))
        except ValueError as e:
            raise SystemExit(f"Not valid JSON: {args.file} ({e})")
        slots = normalize_slots(raw)
        _emit({"slots": [s.model_dump() for s in slots], "totalSlots": len(slots)}, args.out)
        return EXIT_OK

    raise SystemExit(f"Unknown command: {args.cmd}")


def _cmd_check_slots(args: argparse.Namespace) -> int:
    try:
        request = SlotCheckRequest(
            username=args.username or os.getenv("PORTAL_USERNAME", ""),
            password=args.password or os.getenv("PORTAL_PASSWORD", ""),
            appd=args.appd or os.getenv("PORTAL_APPD", ""),
        )
    except ValidationError as e:
        missing = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        _emit({"success": False, "error": "MissingFields", "message": f"Missing fields: {', '.join(missing)}"})
        return EXIT_BAD_INPUT

    cfg = load_config(args.config)
    updates: dict = {}
    if args.headful:
        updates["browser"] = cfg.browser.model_copy(update={"headless": False})
    if args.verify_login:
        updates["verify_login"] = True
    if updates:
        cfg = cfg.model_copy(update=updates)

    configure_logging(
        level=cfg.logging.level,
        file_path=cfg.logging.file_path or None,
        secrets=(request.password,),
    )
    logger.info("Checking slots (appd=%s, headless=%s)", request.appd, cfg.browser.headless)

    result = check_slots(request, config=cfg)
    _emit(result.to_payload(), args.out)

    if result.success:
        return EXIT_OK
    if result.error_kind in (ErrorKind.BOT_CHALLENGE, ErrorKind.FORM_NOT_FOUND) and result.snippet:
        logger.info("Page snippet: %s", snippet_of(result.snippet, 200))
    return EXIT_FAILED
