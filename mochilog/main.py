"""MochiLog — command-line entry point.

Boot sequence:
1. Logging
2. Database initialization (local source only)
3. Fetch + aggregate the trailing window for one user
4. Write JSON, optionally print a summary
"""

import argparse
import asyncio
import logging
from datetime import date

from mochilog.analysis import AnalysisContext, load_analysis
from mochilog.config import LOG_LEVEL, LOG_SOURCE, OWNER_USER_ID
from mochilog.db import init_db
from mochilog.fetchers import make_fetcher
from mochilog.reporter import format_summary, generate_json_output, save_json_output

log = logging.getLogger("mochilog")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mochilog",
        description="Merge habit and mood logs into per-day records for the last few months.",
    )
    parser.add_argument("--user-id", default=OWNER_USER_ID,
                        help="User whose logs to aggregate (default: OWNER_USER_ID)")
    parser.add_argument("--source", default=LOG_SOURCE, choices=["sqlite", "supabase"],
                        help=f"Where raw logs come from (default: {LOG_SOURCE})")
    parser.add_argument("--reference", type=date.fromisoformat, default=None,
                        help="Last day of the window, YYYY-MM-DD (default: today)")
    parser.add_argument("--output", default="daily_logs.json",
                        help="Output JSON path (default: daily_logs.json)")
    parser.add_argument("--sort", action="store_true",
                        help="Write daily logs in calendar order")
    parser.add_argument("--show-summary", action="store_true",
                        help="Print a per-day summary to the console")
    return parser


async def run(args: argparse.Namespace) -> int:
    if args.source == "sqlite":
        init_db()

    fetcher = make_fetcher(args.source)
    ctx = AnalysisContext(user_id=args.user_id, now=args.reference)
    view = await load_analysis(ctx, fetcher)

    if args.show_summary:
        print(format_summary(view))

    if not view.ok:
        log.error("Analysis failed: %s", view.error)
        return 1

    save_json_output(generate_json_output(view, sort=args.sort), args.output)
    return 0


def log_level(name: str = LOG_LEVEL) -> str:
    """Level name for logging.basicConfig, which only accepts upper case."""
    return (name or "INFO").strip().upper()


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=log_level(),
        format="%(asctime)s %(levelname)-5s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    args = create_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
