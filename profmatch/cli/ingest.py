# =============================================================================
# profmatch/cli/ingest.py - command-line access to both pipelines
# =============================================================================
#
# Subcommands:
#
#   ingest - fetch one instructor page and store it in the index
#   ask    - answer a question from the index, streaming to stdout
#   stats  - show the size of the index namespace
#
# Providers are selected exactly as in the web app (profmatch/container.py),
# so the CLI and the server always embed with the same model.
#
# Usage examples:
#   python -m profmatch.cli.ingest ingest https://www.example.com/professor/123
#   python -m profmatch.cli.ingest ingest https://... --retries 3 --backoff 2
#   python -m profmatch.cli.ingest ask "Who teaches approachable intro CS?"
#   python -m profmatch.cli.ingest stats
# =============================================================================

"""Standalone CLI for ingesting instructor pages and querying the index.

Usage::

    python -m profmatch.cli.ingest ingest URL [--retries N] [--backoff S]
    python -m profmatch.cli.ingest ask "QUESTION"
    python -m profmatch.cli.ingest stats

Exit codes: ``0`` success, ``1`` failure, ``2`` bad input (user-correctable).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from profmatch.config.loader import load_config
from profmatch.config.settings import Settings
from profmatch.container import build_components
from profmatch.models.conversation import Conversation, ConversationMessage, Role
from profmatch.utils.errors import ProfMatchError
from profmatch.utils.logging import configure_logging
from profmatch.utils.retry import retry_ingestion

_EXIT_OK = 0
_EXIT_FAILED = 1
_EXIT_USER_ERROR = 2


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    pipeline = components["ingestion_pipeline"]
    print(f"Ingesting: {args.url}")

    state = await retry_ingestion(pipeline, args.url, attempts=args.retries, backoff=args.backoff)
    if state.succeeded and state.record is not None:
        record = state.record
        print("\nIngestion complete:")
        print(f"  Name:       {record.name}")
        print(f"  Department: {record.department}")
        print(f"  Rating:     {record.rating_raw}")
        print(f"  Reviews:    {len(record.review_snippets)}")
        return _EXIT_OK

    error = state.error
    stage = state.failed_stage.value if state.failed_stage else "UNKNOWN"
    print(f"\nIngestion failed at {stage}: {error.message if error else 'unknown error'}", file=sys.stderr)
    if error is not None and error.user_correctable:
        return _EXIT_USER_ERROR
    return _EXIT_FAILED


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    retrieval = components["retrieval_pipeline"]
    composer = components["composer"]

    conversation = Conversation([ConversationMessage(role=Role.USER, content=args.question)])
    chunks = await retrieval.answer(conversation)

    async def _echo() -> Any:
        async for chunk in chunks:
            if chunk:
                sys.stdout.write(chunk)
                sys.stdout.flush()
            yield chunk

    answer = await composer.collect(_echo(), conversation)
    print()
    if answer.interrupted:
        reason = answer.error.message if answer.error else "unknown error"
        print(f"\n[Generation interrupted: {reason}]", file=sys.stderr)
        return _EXIT_FAILED
    return _EXIT_OK


async def _handle_stats(args: argparse.Namespace, components: dict[str, Any]) -> int:
    stats = await components["index_gateway"].stats()
    print("Index Statistics")
    print("=" * 40)
    print(f"  Namespace:  {stats.namespace}")
    print(f"  Entries:    {stats.total_entries}")
    print(f"  Dimension:  {stats.dimension}")
    return _EXIT_OK


_HANDLERS = {
    "ingest": _handle_ingest,
    "ask": _handle_ask,
    "stats": _handle_stats,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    config = load_config(settings=app_settings)
    components = build_components(app_settings, config)
    try:
        return await _HANDLERS[args.command](args, components)
    except ProfMatchError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return _EXIT_USER_ERROR if exc.user_correctable else _EXIT_FAILED
    finally:
        await components["http_client"].aclose()


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="profmatch",
        description="Ingest instructor pages and query the ProfMatch index.",
    )
    subparsers = parser.add_subparsers(dest="command")

    ingest = subparsers.add_parser("ingest", help="Fetch and index one instructor page")
    ingest.add_argument("url", help="Instructor page URL (http or https)")
    ingest.add_argument(
        "--retries",
        type=int,
        default=1,
        help="Total attempts while the failure is retryable (default: 1)",
    )
    ingest.add_argument(
        "--backoff",
        type=float,
        default=1.0,
        help="Seconds multiplied by the attempt number between retries (default: 1.0)",
    )

    ask = subparsers.add_parser("ask", help="Ask a question and stream the answer")
    ask.add_argument("question", help="Natural-language question")

    subparsers.add_parser("stats", help="Show index statistics")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse arguments, build components, dispatch."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(_EXIT_FAILED)
    if args.command == "ingest" and args.retries < 1:
        parser.error("--retries must be >= 1")

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level, json_output=False)

    try:
        exit_code = asyncio.run(_run(args, app_settings))
    except ProfMatchError as exc:
        # Raised while building components, e.g. no embedding provider.
        print(f"Error: {exc.message}", file=sys.stderr)
        exit_code = _EXIT_FAILED
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
