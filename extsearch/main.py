"""Entry point: search | engines."""

import argparse
import sys

from extsearch.contracts.search_v1 import BoostOptions, SearchFilters, SearchOptions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="extsearch", description="Federated indie-web search")
    sub = parser.add_subparsers(dest="mode", required=True)

    search = sub.add_parser("search", help="Run one search and print ranked results")
    search.add_argument("terms", nargs="*", help="Query terms; read from stdin when omitted")
    search.add_argument(
        "--engine",
        action="append",
        dest="engines",
        default=None,
        help="Restrict to this engine id (repeatable)",
    )
    search.add_argument("--timeout", type=int, default=None, help="Overall budget in ms")
    search.add_argument("--indie-only", action="store_true")
    search.add_argument("--privacy-only", action="store_true")
    search.add_argument("--no-trackers", action="store_true")
    search.add_argument("--recency", action="store_true", help="Boost recently published results")
    search.add_argument("--json", action="store_true", dest="as_json")

    engines = sub.add_parser("engines", help="List registered engines and their status")
    engines.add_argument("--json", action="store_true", dest="as_json")
    return parser


def options_from_args(args: argparse.Namespace) -> SearchOptions:
    filters = None
    if args.indie_only or args.privacy_only or args.no_trackers:
        filters = SearchFilters(
            indie_only=args.indie_only,
            privacy_only=args.privacy_only,
            no_trackers=args.no_trackers,
        )
    boost = BoostOptions(enable_recency_boost=True) if args.recency else None
    return SearchOptions(
        timeout_ms=args.timeout,
        enabled_engines=args.engines,
        filters=filters,
        boost=boost,
    )


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.mode == "search":
        from extsearch.interfaces.oneshot import main as run_oneshot_main

        query = " ".join(args.terms).strip() if args.terms else sys.stdin.read().strip()
        sys.exit(run_oneshot_main(query, options_from_args(args), as_json=args.as_json))

    elif args.mode == "engines":
        from extsearch.interfaces.oneshot import print_engine_status

        sys.exit(print_engine_status(as_json=args.as_json))


if __name__ == "__main__":
    main()
