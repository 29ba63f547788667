"""Command line entrypoint for running the closet service locally."""

from __future__ import annotations

import argparse
import json

from closet_app.app import ClosetApp
from closet_app.logging_config import operation_context


def main() -> None:
    parser = argparse.ArgumentParser(description="Closet recommendation service")
    subparsers = parser.add_subparsers(dest="command", required=True)

    recommend = subparsers.add_parser("recommend", help="Generate an outfit around a base item.")
    recommend.add_argument("--user", required=True, help="Owner of the closet.")
    recommend.add_argument("--base-item", required=True, help="Item id to build the outfit around.")
    recommend.add_argument("--exclude", nargs="*", default=[], help="Item ids to leave out.")

    enrich = subparsers.add_parser("enrich-pending", help="Generate embeddings for pending items.")
    enrich.add_argument("--limit", type=int, default=10, help="Maximum items to process.")

    args = parser.parse_args()
    app = ClosetApp()

    with operation_context(f"cli:{args.command}"):
        if args.command == "recommend":
            outfit = app.generate_outfit(user_id=args.user, base_item_id=args.base_item, exclude_ids=args.exclude)
            print(json.dumps([item.to_dict() for item in outfit], indent=2))
        else:
            print(json.dumps(app.enrich_pending(limit=args.limit), indent=2))


if __name__ == "__main__":
    main()
