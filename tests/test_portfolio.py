import pytest

from propdesk.models import MarketData, Transaction, TransactionType
from propdesk.portfolio import dashboard_stats, investment_metrics, recent_transactions


class TestDashboard:

    def test_demo_stats(self, store):
        stats = dashboard_stats(store.properties, store.tenants, store.transactions)
        assert stats["property_count"] == 1
        assert stats["tenant_count"] == 1
        assert stats["total_units"] == 2
        assert stats["occupied_units"] == 1
        assert stats["occupancy_rate"] == 50
        assert stats["income"] == 0
        assert stats["expenses"] == 1200
        assert stats["cashflow"] == -1200

    def test_empty_portfolio(self):
        stats = dashboard_stats([], [], [])
        assert stats["occupancy_rate"] == 0
        assert stats["cashflow"] == 0

    def test_recent_transactions_newest_first(self, store):
        assert [t.id for t in recent_transactions(store.transactions)] == ["tx2", "tx1"]
        assert [t.id for t in recent_transactions(store.transactions, limit=1)] == ["tx2"]
        assert recent_transactions(store.transactions, limit=0) == []


class TestInvestmentMetrics:

    def test_demo_property(self, store, prop):
        metrics = investment_metrics(prop, store.transactions)
        assert metrics["annual_rent"] == 17400
        # both demo bookings are passed on to tenants
        assert metrics["annual_costs"] == 0
        assert metrics["gross_yield"] == pytest.approx(7.102, abs=1e-3)
        assert metrics["net_yield"] == pytest.approx(metrics["gross_yield"])
        assert metrics["monthly_cashflow"] == pytest.approx(825)
        assert metrics["total_debt"] == 185000
        assert metrics["market_value"] == 245000
        assert metrics["loan_to_value"] == pytest.approx(75.51, abs=1e-2)

    def test_owner_costs_reduce_net_yield(self, store, prop):
        store.transactions.append(Transaction(
            id="tx9", property_id="p1", type=TransactionType.EXPENSE,
            category="Maintenance / Repair", amount=1200, date="2024-05-01"))
        metrics = investment_metrics(prop, store.transactions)
        assert metrics["annual_costs"] == 1200
        assert metrics["net_yield"] == pytest.approx(16200 / 245000 * 100)
        assert metrics["monthly_cashflow"] == pytest.approx(725)

    def test_market_value_from_analysis(self, store, prop):
        prop.living_space = 110
        prop.market_analysis = MarketData(average_rent_per_m2=13.5, average_sale_per_m2=3000,
                                          market_trend="rising", summary="Busy area")
        metrics = investment_metrics(prop, store.transactions)
        assert metrics["market_value"] == 330000
        assert metrics["loan_to_value"] == pytest.approx(185000 / 330000 * 100)

    def test_no_purchase_price(self, store, prop):
        prop.purchase_price = None
        metrics = investment_metrics(prop, store.transactions)
        assert metrics["gross_yield"] == 0
        assert metrics["net_yield"] == 0
        assert metrics["loan_to_value"] == 0
