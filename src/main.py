# src/main.py — v2
"""CLI entry point — serve, ask, models commands.

Usage:
    diarygate serve [--host HOST] [--port PORT]
    diarygate ask <payload.json>
    diarygate models
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from diarygate.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="diarygate",
        description=f"diarygate v{__version__} — AI diary gateway",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the HTTP gateway")
    p_serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    p_serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    p_serve.set_defaults(func=_cmd_serve)

    # --- ask ---
    p_ask = subparsers.add_parser(
        "ask", help="Send an {action, payload} JSON file through the dispatcher",
    )
    p_ask.add_argument("payload_file", type=Path, help="Path to request JSON")
    p_ask.set_defaults(func=_cmd_ask)

    # --- models ---
    p_models = subparsers.add_parser("models", help="List models available to the API key")
    p_models.set_defaults(func=_cmd_models)

    return parser


def _cmd_serve(args: argparse.Namespace) -> int:
    """Run the gateway under uvicorn."""
    import uvicorn

    from diarygate.config.settings import Settings
    from diarygate.gateway.app import create_app
    from diarygate.logging.logger import setup_logging

    settings = Settings()
    setup_logging(level=settings.log_level, log_format=settings.log_format)
    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


def _cmd_ask(args: argparse.Namespace) -> int:
    """Run one request locally, bypassing HTTP."""
    return asyncio.run(_ask(args.payload_file))


async def _ask(payload_file: Path) -> int:
    from diarygate.config.settings import Settings
    from diarygate.llm.client_factory import create_model_client
    from diarygate.llm.dispatcher import Dispatcher, DispatchError
    from diarygate.llm.models import parse_action, parse_payload

    if not payload_file.exists():
        logger.error("File not found: %s", payload_file)
        return 1

    body = json.loads(payload_file.read_text(encoding="utf-8"))
    if not isinstance(body, dict) or not body.get("action") or not body.get("payload"):
        logger.error("Request file must contain 'action' and 'payload'")
        return 1

    settings = Settings()
    if not settings.has_credential:
        logger.error("GEMINI_API_KEY is not set")
        return 1

    action = parse_action(body["action"])
    payload = parse_payload(action, body["payload"])
    dispatcher = Dispatcher.from_settings(
        create_model_client(settings.llm_provider, settings), settings
    )
    try:
        result = await dispatcher.dispatch(action, payload)
    except DispatchError as exc:
        print(json.dumps({"error": exc.message, "model": exc.model}, ensure_ascii=False))
        return 1

    print(json.dumps({"result": result.text}, ensure_ascii=False, indent=2))
    print(f"\nModel: {result.model}  Attempts: {len(result.attempts)}", file=sys.stderr)
    return 0


def _cmd_models(args: argparse.Namespace) -> int:
    """Print the models usable for generateContent."""
    from diarygate.config.settings import Settings
    from diarygate.llm.adapters.google_adapter import GoogleAdapter

    settings = Settings()
    if not settings.has_credential:
        logger.error("GEMINI_API_KEY is not set")
        return 1

    names = asyncio.run(GoogleAdapter(api_key=settings.gemini_api_key).list_models())
    for name in names:
        print(name)
    return 0


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
