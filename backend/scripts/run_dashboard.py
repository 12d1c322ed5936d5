#!/usr/bin/env python3
"""
Replenishment Dashboard — run one analysis session from the command line.

Usage:
  python scripts/run_dashboard.py
  python scripts/run_dashboard.py --search keyboard --filter Reorder --sort avg_sales --descending
  python scripts/run_dashboard.py --export reorder.csv --visible-only

Trains the reorder classifier, fetches the catalog from the products API,
then prints the summary cards, top sellers and the requested page.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add backend to path so imports work
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dashboard.client import ProductClient  # noqa: E402
from dashboard.session import DashboardSession, SessionState  # noqa: E402
from inventory.records import STATUS_BADGES  # noqa: E402
from inventory.views import SORT_KEYS, SortDirection, ViewFilter  # noqa: E402


def render(session: DashboardSession) -> None:
    summary = session.summary
    print("=" * 72)
    print("  Inventory Management System — Replenishment Dashboard")
    print("=" * 72)
    print(f"  Total SKU Count:   {summary.total}")
    print(f"  Restock Required:  {summary.reorder_count} ({session.reorder_percent:.1f}%)")
    print(f"  Healthy Stock:     {summary.safe_count}")

    print("\n  Top sellers:")
    for product in session.top_sellers():
        print(f"    {product.name:<36} {product.avg_sales:>4}/wk")

    page = session.view()
    print(f"\n  {'Product Name':<36}{'Stock':>7}{'Sales/Wk':>10}{'Lead':>6}  Status")
    print("  " + "-" * 70)
    for product in page.page_items:
        decision = session.decisions[product.id]
        print(
            f"  {product.name:<36}{product.current_inventory:>7}{product.avg_sales:>10}"
            f"{product.lead_time:>6}  {STATUS_BADGES[decision.label]}"
        )
    if not page.page_items:
        print("  No products match the current search/filter.")
    print(f"\n  Page {page.current_page} of {max(page.total_pages, 1)} ({page.filtered_count} matching)")


async def run(args) -> int:
    client = ProductClient(url=args.url)
    async with DashboardSession(client.fetch_products) as session:
        await session.start()
        if session.state is SessionState.ERROR and args.retry:
            await session.retry()
        if session.state is not SessionState.READY:
            print(f"\n❌ {session.error}")
            return 1

        if args.search:
            session.search(args.search)
        session.set_filter(args.filter)
        if args.sort and args.sort != session.view_state.sort_key:
            session.sort_by(args.sort)
        if args.descending and session.view_state.sort_direction is SortDirection.ASCENDING:
            session.sort_by(session.view_state.sort_key)
        session.go_to_page(args.page)
        render(session)

        if args.export:
            Path(args.export).write_text(session.export_csv(visible_only=args.visible_only), encoding="utf-8")
            print(f"\n  Exported to {args.export}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Restock replenishment dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--url", type=str, default=None, help="Products endpoint (default: from settings)")
    parser.add_argument("--search", type=str, default="", help="Case-insensitive product name filter")
    parser.add_argument("--filter", choices=[f.value for f in ViewFilter], default=ViewFilter.ALL.value)
    parser.add_argument("--sort", choices=SORT_KEYS, default=None, help="Sort column")
    parser.add_argument("--descending", action="store_true", help="Sort descending instead of ascending")
    parser.add_argument("--page", type=int, default=1, help="Page to show (clamped to available pages)")
    parser.add_argument("--export", type=str, default=None, help="Write CSV to this path")
    parser.add_argument("--visible-only", action="store_true", help="Export only filtered products")
    parser.add_argument("--retry", action="store_true", help="Retry once if loading fails")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
