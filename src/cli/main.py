"""Terminal front end for the deal finder.

Runs a single search when a query is given on the command line, otherwise
reads queries interactively until ``:quit``.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from src.client.api import DealSearchClient
from src.client.controller import SearchController, validate_requirement
from src.presenter.screen import render_screen
from src.shared.config import settings
from src.shared.errors import ValidationError
from src.shared.logging import setup_logging, shutdown_tracing
from src.shared.models import SearchPhase

_PROMPT = "What are you looking for? "
_HELP = "Type a search, ':open N' to open deal N, or ':quit' to exit."


async def print_alert(title: str, message: str) -> None:
    print(f"{title}: {message}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deal-finder", description="Find the best deals online",
    )
    parser.add_argument("query", nargs="?", help="Run one search and exit")
    parser.add_argument(
        "--api-url",
        default=settings.api_base_url,
        help=f"Backend base URL (default: {settings.api_base_url})",
    )
    parser.add_argument(
        "--open",
        type=int,
        metavar="RANK",
        dest="open_rank",
        help="After a one-shot search, open the deal at this rank",
    )
    return parser


async def run_once(controller: SearchController, query: str, open_rank: int | None) -> int:
    state = await controller.search(query)
    if state.phase is not SearchPhase.IDLE:
        print(render_screen(state))
    if state.phase in (SearchPhase.ERROR, SearchPhase.IDLE):
        return 1
    if open_rank is not None and not await controller.open_rank(open_rank):
        return 1
    return 0


async def run_interactive(controller: SearchController) -> int:
    print(render_screen(controller.state))
    print()
    print(_HELP)
    while True:
        try:
            line = await asyncio.to_thread(input, _PROMPT)
        except (EOFError, KeyboardInterrupt):
            print()
            return 0

        command = line.strip()
        if command == ":quit":
            return 0
        if command.startswith(":open"):
            _, _, arg = command.partition(" ")
            try:
                rank = int(arg)
            except ValueError:
                print("Usage: :open N", file=sys.stderr)
                continue
            await controller.open_rank(rank)
            continue

        controller.set_query(line)
        try:
            validate_requirement(line)
        except ValidationError:
            # The controller surfaces the prompt and sends nothing.
            await controller.submit_search()
            continue
        task = controller.submit_search()
        print(render_screen(controller.state))
        state = await task
        print(render_screen(state))


async def _run(args: argparse.Namespace) -> int:
    controller = SearchController(
        DealSearchClient(args.api_url),
        notifier=print_alert,
    )
    if args.query is not None:
        return await run_once(controller, args.query, args.open_rank)
    return await run_interactive(controller)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging()
    try:
        code = asyncio.run(_run(args))
    finally:
        shutdown_tracing()
    sys.exit(code)


if __name__ == "__main__":
    main()
