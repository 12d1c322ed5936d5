"""
Aggregator — dashboard statistics derived from the decision set.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from inventory.records import Decision, DecisionLabel, ProductRecord


@dataclass(frozen=True)
class Summary:
    total: int
    reorder_count: int
    safe_count: int


def summarize(products: Sequence[ProductRecord], decisions: Mapping[int, Decision]) -> Summary:
    """Count products by decision. Products without a decision count as safe."""
    reorder = sum(
        1 for p in products if p.id in decisions and decisions[p.id].label is DecisionLabel.REORDER
    )
    return Summary(total=len(products), reorder_count=reorder, safe_count=len(products) - reorder)


def top_by_sales(products: Sequence[ProductRecord], n: int = 5) -> list[ProductRecord]:
    """Up to n fastest sellers; ties keep fetch order."""
    if n <= 0:
        return []
    return sorted(products, key=lambda p: p.avg_sales, reverse=True)[:n]


def reorder_percent(summary: Summary) -> float:
    if summary.total == 0:
        return 0.0
    return 100.0 * summary.reorder_count / summary.total


def explain(product: ProductRecord, decision: Decision) -> str:
    """
    Human-readable rationale for one product's decision.

    Checks run in priority order: empty stock, stock below one week of
    sales, then a generic message per label.
    """
    if product.current_inventory == 0:
        return "Out of stock: no units on hand. Replenish immediately."
    if product.current_inventory < product.avg_sales:
        return (
            f"Stockout risk: {product.current_inventory} units on hand "
            f"against {product.avg_sales} units sold per week."
        )
    if decision.label is DecisionLabel.REORDER:
        return "Stock is critically low relative to the replenishment lead time."
    return "Stock level is sufficient to cover expected demand."
