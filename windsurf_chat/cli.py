"""CLI entry point for windsurf-chat.

Credentials are read from the environment (or a .env file); finding them on
a running IDE is someone else's job.

Entry point:
    windsurf-chat models [--json]
    windsurf-chat ask PROMPT --model <name> [--system TEXT] [--timeout S]
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from windsurf_chat.errors import WindsurfError

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# ARGUMENT PARSING
# ─────────────────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="windsurf-chat",
        description="Chat with a model through the local Windsurf language server.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command")

    # models
    models_p = sub.add_parser("models", help="List known model names")
    models_p.add_argument(
        "--json", action="store_true", dest="json_output",
        help="Print name -> code mapping as JSON",
    )

    # ask
    ask_p = sub.add_parser("ask", help="Send one prompt and stream the reply")
    ask_p.add_argument("prompt", help="User message")
    ask_p.add_argument("--model", "-m", required=True, help="Model name (see `models`)")
    ask_p.add_argument("--system", default=None, help="System prompt override")
    ask_p.add_argument("--timeout", type=float, default=None, help="Overall timeout (seconds)")
    ask_p.add_argument(
        "--structured", action="store_true",
        help="Send chat entries in the structured (id/timestamp/intent) form",
    )
    ask_p.add_argument(
        "--raw", action="store_true",
        help="Decode response bytes as UTF-8 instead of extracting text heuristically",
    )

    return parser


# ─────────────────────────────────────────────────────────────────────
# COMMANDS
# ─────────────────────────────────────────────────────────────────────


def _cmd_models(json_output: bool = False) -> int:
    """List model names. Returns exit code."""
    from windsurf_chat.models import MODEL_CODES

    if json_output:
        json.dump(MODEL_CODES, sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        for name in MODEL_CODES:
            print(name)
    return 0


async def _cmd_ask(
    prompt: str,
    model: str,
    system: Optional[str] = None,
    timeout: Optional[float] = None,
    structured: bool = False,
    raw: bool = False,
) -> int:
    """Stream one reply to stdout. Returns exit code."""
    from windsurf_chat.config import load_credentials_from_env
    from windsurf_chat.decoder import HeuristicChunkDecoder, Utf8ChunkDecoder
    from windsurf_chat.messages import ChatEntryForm
    from windsurf_chat.streaming import stream_chat

    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    def on_chunk(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    try:
        credentials = load_credentials_from_env()
        await stream_chat(
            credentials,
            model,
            messages,
            on_chunk=on_chunk,
            timeout_seconds=timeout,
            decoder=Utf8ChunkDecoder() if raw else HeuristicChunkDecoder(),
            form=ChatEntryForm.STRUCTURED if structured else ChatEntryForm.FORMATTED,
        )
    except WindsurfError as e:
        sys.stdout.write("\n")
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    sys.stdout.write("\n")
    return 0


# ─────────────────────────────────────────────────────────────────────
# ENTRY POINT
# ─────────────────────────────────────────────────────────────────────


def main():
    parser = _build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s %(message)s", stream=sys.stderr)

    # Load env
    from dotenv import load_dotenv
    load_dotenv()

    # Dispatch
    if args.command == "models":
        code = _cmd_models(json_output=args.json_output)
    elif args.command == "ask":
        code = asyncio.run(_cmd_ask(
            prompt=args.prompt,
            model=args.model,
            system=args.system,
            timeout=args.timeout,
            structured=args.structured,
            raw=args.raw,
        ))
    else:
        parser.print_help()
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
