"""
Portfolio Metrics
Author: Bryce Fountain | Skoll.dev

Figures for the home dashboard and the investor view.
"""
from typing import List

from propdesk.bookkeeping import totals
from propdesk.models import Property, Tenant, Transaction, TransactionType


def dashboard_stats(properties: List[Property], tenants: List[Tenant],
                    transactions: List[Transaction]) -> dict:
    """Headline numbers for the dashboard stat cards."""
    total_units = sum(p.unit_count() for p in properties)
    occupied_units = sum(1 for p in properties for u in p.units if u.tenant_id)
    occupancy_rate = (occupied_units / total_units * 100) if total_units > 0 else 0
    sums = totals(transactions)
    return {
        "property_count": len(properties),
        "tenant_count": len(tenants),
        "total_units": total_units,
        "occupied_units": occupied_units,
        "occupancy_rate": occupancy_rate,
        "income": sums["income"],
        "expenses": sums["expenses"],
        "cashflow": sums["net"],
    }


def recent_transactions(transactions: List[Transaction], limit: int = 6) -> List[Transaction]:
    """Most recently entered bookings, newest first."""
    if limit <= 0:
        return []
    return list(reversed(transactions[-limit:]))


def investment_metrics(prop: Property, transactions: List[Transaction]) -> dict:
    """
    Yield and cashflow figures for one property.

    Utility-relevant expenses are passed on to tenants and therefore left out
    of the net yield and cashflow.

    Returns:
        dict with annual_rent, gross_yield, net_yield, monthly_cashflow,
        total_debt, loan_to_value, market_value (yields and LTV in percent)
    """
    monthly_rent = sum(unit.base_rent for unit in prop.units)
    annual_rent = monthly_rent * 12
    annual_costs = sum(
        t.amount for t in transactions
        if t.property_id == prop.id
        and t.type is TransactionType.EXPENSE
        and not t.is_utility_relevant
    )
    purchase_price = prop.purchase_price or 0
    invested = purchase_price + (prop.ancillary_costs or 0)
    installments = sum(loan.monthly_installment for loan in prop.loans)
    total_debt = sum(loan.current_balance for loan in prop.loans)

    market_value = purchase_price
    if prop.market_analysis and prop.living_space:
        market_value = prop.living_space * prop.market_analysis.average_sale_per_m2

    return {
        "annual_rent": annual_rent,
        "annual_costs": annual_costs,
        "gross_yield": (annual_rent / purchase_price * 100) if purchase_price > 0 else 0,
        "net_yield": ((annual_rent - annual_costs) / invested * 100) if invested > 0 else 0,
        "monthly_cashflow": monthly_rent - installments - annual_costs / 12,
        "total_debt": total_debt,
        "loan_to_value": (total_debt / market_value * 100) if market_value > 0 else 0,
        "market_value": market_value,
    }
