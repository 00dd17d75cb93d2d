"""
CLI for bulletin-board.

Usage:
    python -m bulletin_board.run [OPTIONS]

    # List suggestions with the saved filters
    python -m bulletin_board.run

    # Support tab as a status board
    python -m bulletin_board.run --tab support --kanban

    # Open one record with its comments
    python -m bulletin_board.run --open a0X000000000001
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .board import BoardController
from .client import BulletinClient
from .config import BoardConfig
from .models import Tab
from .storage import JsonFileStore, MemoryStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("bulletin-board")


def build_board(config: BoardConfig) -> BoardController:
    """Wire a controller to the configured service and filter store."""
    client = BulletinClient.from_config(config.service)
    if config.filters.storage_path:
        store = JsonFileStore(config.filters.storage_path)
    else:
        store = MemoryStore()
    return BoardController(client, config=config, store=store)


def print_list(board: BoardController, kanban: bool = False) -> None:
    view = board.list_views[board.active_tab]
    if kanban:
        view.show_kanban()
        for column in view.columns():
            print(f"== {column.label} ({len(column.items)})")
            for record in column.items:
                print(f"   {record.record_number}  {record.title}")
        return

    rows = view.rows()
    print(" | ".join(view.column_labels))
    for row in rows:
        who = row.get("ownerName", row.get("createdByName", ""))
        cells = [row["number"], row["title"]]
        if "priority" in row:
            cells.append(row["priority"])
        cells += [row["status"], row["categoryText"], who, str(row["commentCount"]), row["updatedDate"]]
        print(" | ".join(cells))
    print(f"({len(rows)} record(s))")


def print_detail(board: BoardController) -> None:
    detail = board.detail
    if detail is None:
        return
    print(detail.title_text)
    print(f"{detail.status_label}: {detail.status_value}")
    if detail.record.is_support:
        print(f"Owner: {detail.owner_display}")
    print(f"Categories: {detail.record.category_text}")
    print()
    for row in detail.comment_rows():
        print(f"[{row['when']}] {row['author']}: {row['body']}")


async def run(config: BoardConfig, args: argparse.Namespace) -> int:
    board = build_board(config)
    try:
        await board.initialize()

        if board.active_tab.value != args.tab:
            await board.select_tab(args.tab)

        overrides = {
            "search": args.search,
            "status": args.status,
            "categoryName": args.category,
            "ownerScope": args.owner,
        }
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if overrides:
            current = board.filters[board.active_tab].to_payload()
            current.update(overrides)
            await board.apply_filters(board.active_tab, current)

        if args.open:
            if not await board.open_detail(args.open):
                for toast in board.notifier.toasts:
                    logger.error(f"{toast.title}: {toast.message}")
                return 1
            print_detail(board)
            return 0

        print_list(board, kanban=args.kanban)
        return 0
    finally:
        await board.aclose()


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="bulletin-board: Suggestions and Support Requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Suggestions with saved filters
    python -m bulletin_board.run

    # Filter support tickets by category
    python -m bulletin_board.run --tab support --category Hardware

    # Use a specific config file
    python -m bulletin_board.run --config bulletin.yaml --tab support --kanban
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=Path("bulletin.yaml"),
        help="Path to config file (default: bulletin.yaml)",
    )
    parser.add_argument("--api-base", type=str, help="Override the service URL from config")
    parser.add_argument(
        "--tab",
        choices=[t.value for t in Tab],
        default=Tab.SUGGESTIONS.value,
        help="Tab to show (default: suggestions)",
    )
    parser.add_argument("--search", type=str, help="Free-text search")
    parser.add_argument("--status", type=str, help="Status or decision filter")
    parser.add_argument("--category", type=str, help="Category name filter")
    parser.add_argument("--owner", type=str, help="Owner scope: ANY, ME, UNASSIGNED or USER:<id>")
    parser.add_argument(
        "--kanban",
        action="store_true",
        help="Group support tickets by status",
    )
    parser.add_argument("--open", type=str, metavar="ID", help="Show one record and its comments")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.kanban and args.tab != Tab.SUPPORT.value:
        parser.error("--kanban is only available with --tab support")

    config = BoardConfig.from_yaml(args.config)
    if args.api_base:
        config.service.api_base = args.api_base

    logger.info(f"Config loaded from {args.config}")
    logger.info(f"Service: {config.service.api_base}")

    return asyncio.run(run(config, args))


if __name__ == "__main__":
    sys.exit(main())
