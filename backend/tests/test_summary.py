"""
Tests for the Aggregator — summary counts, top sellers, reorder %, rationale.
"""

import pytest

from conftest import decide, make_product
from inventory.records import Decision, DecisionLabel
from inventory.summary import Summary, explain, reorder_percent, summarize, top_by_sales

REORDER = Decision(score=0.9, label=DecisionLabel.REORDER)
SAFE = Decision(score=0.1, label=DecisionLabel.SAFE)


class TestSummarize:
    def test_counts_add_up(self, catalog):
        decisions = decide(catalog, reorder_ids=[1, 4, 7])
        summary = summarize(catalog, decisions)
        assert summary == Summary(total=12, reorder_count=3, safe_count=9)
        assert summary.reorder_count + summary.safe_count == summary.total

    @pytest.mark.parametrize("reorder_ids", [[], [1], [2, 3, 5, 8], list(range(1, 13))])
    def test_identity_holds_for_any_split(self, catalog, reorder_ids):
        summary = summarize(catalog, decide(catalog, reorder_ids))
        assert summary.reorder_count + summary.safe_count == summary.total == len(catalog)
        assert summary.reorder_count == len(reorder_ids)

    def test_empty(self):
        assert summarize([], {}) == Summary(total=0, reorder_count=0, safe_count=0)


class TestReorderPercent:
    def test_zero_total_is_zero(self):
        assert reorder_percent(Summary(total=0, reorder_count=0, safe_count=0)) == 0

    def test_ratio(self):
        assert reorder_percent(Summary(total=8, reorder_count=2, safe_count=6)) == pytest.approx(25.0)

    def test_all_reorder(self):
        assert reorder_percent(Summary(total=3, reorder_count=3, safe_count=0)) == pytest.approx(100.0)


class TestTopBySales:
    def test_descending(self, catalog):
        top = top_by_sales(catalog, 3)
        assert [p.avg_sales for p in top] == sorted((p.avg_sales for p in catalog), reverse=True)[:3]

    def test_ties_keep_fetch_order(self):
        products = [
            make_product(1, sales=20),
            make_product(2, sales=40),
            make_product(3, sales=20),
            make_product(4, sales=40),
            make_product(5, sales=20),
        ]
        assert [p.id for p in top_by_sales(products, 5)] == [2, 4, 1, 3, 5]

    def test_n_larger_than_catalog(self, catalog):
        assert len(top_by_sales(catalog, 50)) == len(catalog)

    def test_non_positive_n(self, catalog):
        assert top_by_sales(catalog, 0) == []
        assert top_by_sales(catalog, -2) == []


class TestExplain:
    def test_scenario_a_empty_stock(self):
        product = make_product(1, stock=0, sales=50, lead=3)
        assert explain(product, REORDER).startswith("Out of stock")

    def test_empty_stock_wins_over_label(self):
        product = make_product(1, stock=0, sales=0, lead=3)
        assert explain(product, SAFE).startswith("Out of stock")

    def test_stockout_risk_includes_figures(self):
        product = make_product(1, stock=12, sales=30, lead=7)
        message = explain(product, REORDER)
        assert message.startswith("Stockout risk")
        assert "12 units" in message
        assert "30 units" in message

    def test_stockout_risk_checked_before_label(self):
        product = make_product(1, stock=12, sales=30, lead=7)
        assert explain(product, SAFE).startswith("Stockout risk")

    def test_reorder_generic_lead_time(self):
        product = make_product(1, stock=40, sales=30, lead=14)
        assert "lead time" in explain(product, REORDER)

    def test_scenario_b_sufficient(self):
        product = make_product(1, stock=100, sales=5, lead=2)
        assert explain(product, SAFE) == "Stock level is sufficient to cover expected demand."
