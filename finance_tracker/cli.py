"""Command-line interface for the Finance Tracker.

Usage:
  python -m finance_tracker.cli serve --port 5000
  python -m finance_tracker.cli init-db
  python -m finance_tracker.cli seed-categories USER_ID
  python -m finance_tracker.cli summary USER_ID --from 2024-01-01 --to 2024-03-31

Every command reads settings from the environment and an optional --config JSON file.
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from . import analytics, categories
from .errors import FinanceTrackerError
from .filters import TransactionFilters
from .reports import build_report, format_text_report, save_json
from .webapp import create_app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Personal Finance Tracker")
    p.add_argument("--config", "-c", help="Path to JSON config file")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, help="Port (default: PORT env or 5000)")
    serve.add_argument("--debug", action="store_true")

    sub.add_parser("init-db", help="Create database tables")

    seed = sub.add_parser("seed-categories", help="Create the default categories for a user")
    seed.add_argument("user_id")

    summary = sub.add_parser("summary", help="Print income, expenses and balance for a user")
    summary.add_argument("user_id")
    summary.add_argument("--from", dest="date_from", help="Start date (YYYY-MM-DD)")
    summary.add_argument("--to", dest="date_to", help="End date (YYYY-MM-DD)")
    summary.add_argument("--type", choices=["income", "expense"])
    summary.add_argument("--json", dest="json_out", help="Write summary JSON to path")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    app = create_app(config_path=args.config)

    if args.command == "serve":
        port = args.port or app.config["FINANCE_TRACKER"].port
        app.run(host=args.host, port=port, debug=args.debug)
        return 0

    with app.app_context():
        try:
            if args.command == "init-db":
                # create_app already created the tables.
                print("Database ready.")
            elif args.command == "seed-categories":
                seeded = categories.ensure_default_categories(args.user_id)
                for category in seeded:
                    print(f"{category.type:8} {category.name}")
            elif args.command == "summary":
                filters = TransactionFilters.from_args(
                    {
                        "startDate": args.date_from or "",
                        "endDate": args.date_to or "",
                        "type": args.type or "",
                    }
                )
                report = build_report(
                    analytics.summarize(args.user_id, filters),
                    analytics.spending_by_category(args.user_id, filters),
                    filters,
                )
                print(format_text_report(report))
                if args.json_out:
                    save_json(report, args.json_out)
                    print(f"\nSaved JSON summary to: {args.json_out}")
        except FinanceTrackerError as exc:
            print(f"error: {exc.message}")
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
