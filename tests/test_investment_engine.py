"""
Tests for the investment valuation engine.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from fintrack.engines import investment as engine
from fintrack.engines.errors import InvalidAmountError, InvalidStateError, NotSIPError
from fintrack.models.investment import (
    Investment,
    InvestmentType,
    PortfolioFilters,
    RiskLevel,
    TransactionType,
)


def make_investment(**overrides) -> Investment:
    data = {
        "user_id": "user-1",
        "name": "Acme Corp",
        "investment_type": InvestmentType.STOCKS,
        "purchase_date": datetime(2023, 1, 1),
    }
    data.update(overrides)
    return Investment(**data)


def bought(quantity="10", price="100") -> Investment:
    return engine.add_transaction(
        make_investment(),
        TransactionType.BUY,
        Decimal(quantity),
        Decimal(price),
        executed_at=datetime(2023, 1, 1),
    )


class TestAddTransaction:
    """Tests for add_transaction."""

    def test_buy(self):
        investment = bought()
        assert investment.quantity == Decimal("10")
        assert investment.invested_amount == Decimal("1000")
        assert investment.purchase_price == Decimal("100")
        assert investment.transactions[0].amount == Decimal("1000")

    def test_input_is_not_mutated(self):
        investment = make_investment()
        engine.add_transaction(investment, TransactionType.BUY, Decimal("1"), Decimal("5"))
        assert investment.transactions == []
        assert investment.quantity is None

    def test_sell_uses_average_cost(self):
        investment = engine.add_transaction(
            bought(), TransactionType.SELL, Decimal("4"), Decimal("150"),
        )
        assert investment.quantity == Decimal("6")
        assert investment.invested_amount == Decimal("600")
        assert investment.transactions[-1].amount == Decimal("600")

    def test_sell_more_than_held_is_clamped(self):
        investment = engine.add_transaction(
            bought(), TransactionType.SELL, Decimal("20"), Decimal("120"),
        )
        assert investment.quantity == Decimal("0")
        assert investment.invested_amount == Decimal("0")
        sale = investment.transactions[-1]
        assert sale.quantity == Decimal("10")
        assert sale.amount == Decimal("1200")

    def test_sell_without_holdings_rejected(self):
        with pytest.raises(InvalidStateError, match="Cannot sell without holdings"):
            engine.add_transaction(
                make_investment(), TransactionType.SELL, Decimal("1"), Decimal("10"),
            )

    def test_dividend_only_recorded(self):
        investment = engine.add_transaction(
            bought(), TransactionType.DIVIDEND, Decimal("10"), Decimal("5"),
        )
        assert investment.quantity == Decimal("10")
        assert investment.invested_amount == Decimal("1000")
        assert investment.transactions[-1].amount == Decimal("50")

    def test_split_multiplies_holdings(self):
        investment = engine.add_transaction(bought(), TransactionType.SPLIT, Decimal("2"))
        assert investment.quantity == Decimal("20")
        assert investment.purchase_price == Decimal("50")
        assert investment.invested_amount == Decimal("1000")

    def test_bonus_units_at_zero_cost(self):
        investment = engine.add_transaction(bought(), TransactionType.BONUS, Decimal("5"))
        assert investment.quantity == Decimal("15")
        assert investment.invested_amount == Decimal("1000")

    def test_transaction_type_accepts_value(self):
        investment = engine.add_transaction(make_investment(), "Buy", 2, 10)
        assert investment.quantity == Decimal("2")

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1")])
    def test_non_positive_quantity_rejected(self, quantity):
        with pytest.raises(InvalidAmountError):
            engine.add_transaction(make_investment(), TransactionType.BUY, quantity, Decimal("10"))

    def test_negative_price_rejected(self):
        with pytest.raises(InvalidAmountError):
            engine.add_transaction(
                make_investment(), TransactionType.BUY, Decimal("1"), Decimal("-10"),
            )

    def test_history_is_ordered_by_date(self):
        investment = engine.add_transaction(
            make_investment(),
            TransactionType.BUY,
            Decimal("1"),
            Decimal("10"),
            executed_at=datetime(2023, 6, 1),
        )
        investment = engine.add_transaction(
            investment,
            TransactionType.BUY,
            Decimal("2"),
            Decimal("10"),
            executed_at=datetime(2023, 3, 1),
        )
        assert [t.date for t in investment.transactions] == [
            datetime(2023, 3, 1),
            datetime(2023, 6, 1),
        ]

    def test_apply_transaction_returns_created_entry(self):
        """The created entry is returned even when it equals an earlier one."""
        holding = bought(quantity="2", price="10")
        updated, transaction = engine.apply_transaction(
            holding,
            TransactionType.BUY,
            Decimal("2"),
            Decimal("10"),
            executed_at=datetime(2023, 1, 1),
        )
        assert transaction.type == TransactionType.BUY
        assert transaction.amount == Decimal("20")
        assert len(updated.transactions) == 2
        assert updated.transactions[-1] == transaction


class TestSIPTransactions:
    """Tests for add_sip_transaction."""

    def test_requires_sip_holding(self):
        with pytest.raises(NotSIPError, match="This is not a SIP investment"):
            engine.add_sip_transaction(make_investment(), Decimal("1000"), Decimal("50"))

    def test_units_default_to_amount_over_nav(self):
        investment = engine.add_sip_transaction(
            make_investment(is_sip=True), Decimal("1000"), Decimal("50"),
        )
        assert investment.sip_transactions[0].units == Decimal("20")

    def test_sip_does_not_move_quantity_or_basis(self):
        start = make_investment(is_sip=True, invested_amount=Decimal("500"))
        investment = engine.add_sip_transaction(start, Decimal("1000"), Decimal("50"))
        assert investment.quantity is None
        assert investment.invested_amount == Decimal("500")

    def test_non_positive_nav_rejected(self):
        with pytest.raises(InvalidAmountError):
            engine.add_sip_transaction(
                make_investment(is_sip=True), Decimal("1000"), Decimal("0"),
            )

    @pytest.mark.parametrize("units", ["-5", "0"])
    def test_non_positive_units_rejected(self, units):
        start = make_investment(is_sip=True)
        with pytest.raises(InvalidAmountError, match="SIP units must be positive"):
            engine.add_sip_transaction(start, Decimal("100"), Decimal("10"), units=Decimal(units))
        assert start.sip_transactions == []


class TestUpdateCurrentValue:
    """Tests for update_current_value."""

    def test_price_recorded_when_quantity_tracked(self):
        investment = engine.update_current_value(bought(), Decimal("1500"), Decimal("150"))
        assert investment.current_value == Decimal("1500")
        assert investment.price_per_unit == Decimal("150")

    def test_price_ignored_without_quantity(self):
        investment = engine.update_current_value(
            make_investment(), Decimal("1500"), Decimal("150"),
        )
        assert investment.current_value == Decimal("1500")
        assert investment.price_per_unit is None

    def test_negative_value_rejected(self):
        with pytest.raises(InvalidAmountError):
            engine.update_current_value(bought(), Decimal("-1"))


class TestInvestmentMetrics:
    """Tests for investment_metrics."""

    def test_profit_and_annualized_return(self):
        investment = make_investment(
            invested_amount=Decimal("1000"),
            current_value=Decimal("1100"),
        )
        metrics = engine.investment_metrics(investment, as_of=datetime(2024, 1, 1))
        assert metrics.profit_loss == Decimal("100")
        assert metrics.profit_loss_percentage == Decimal("10")
        assert metrics.days_held == 365
        assert abs(metrics.annualized_return - Decimal("0.1")) < Decimal("1e-9")

    def test_days_held_rounds_up(self):
        investment = make_investment(purchase_date=datetime(2024, 1, 1))
        assert engine.days_held(investment, datetime(2024, 1, 2, 1, 0)) == 2

    def test_zero_days_gives_zero_return(self):
        investment = make_investment(
            purchase_date=datetime(2024, 1, 1),
            invested_amount=Decimal("1000"),
            current_value=Decimal("1100"),
        )
        metrics = engine.investment_metrics(investment, as_of=datetime(2024, 1, 1))
        assert metrics.days_held == 0
        assert metrics.annualized_return == Decimal("0")

    def test_zero_basis_gives_zero_percentages(self):
        investment = make_investment(current_value=Decimal("100"))
        metrics = engine.investment_metrics(investment, as_of=datetime(2024, 1, 1))
        assert metrics.profit_loss == Decimal("100")
        assert metrics.profit_loss_percentage == Decimal("0")
        assert metrics.annualized_return == Decimal("0")

    def test_sip_aggregates(self):
        investment = make_investment(is_sip=True)
        investment = engine.add_sip_transaction(investment, Decimal("1000"), Decimal("50"))
        investment = engine.add_sip_transaction(investment, Decimal("500"), Decimal("25"))
        metrics = engine.investment_metrics(investment, as_of=datetime(2024, 1, 1))
        assert metrics.total_sip_invested == Decimal("1500")
        assert metrics.total_sip_units == Decimal("40")
        assert metrics.average_nav == Decimal("37.5")


class TestPortfolioQueries:
    """Tests for filtering, summaries and allocation."""

    @pytest.fixture
    def portfolio(self):
        return [
            make_investment(
                name="Acme Corp",
                ticker_symbol="ACME",
                sector="Technology",
                category="Large Cap",
                invested_amount=Decimal("1000"),
                current_value=Decimal("1200"),
            ),
            make_investment(
                name="Index Fund",
                investment_type=InvestmentType.MUTUAL_FUND,
                risk_level=RiskLevel.LOW,
                category="Index",
                is_sip=True,
                invested_amount=Decimal("2000"),
                current_value=Decimal("1800"),
            ),
            make_investment(
                name="Bitcoin",
                investment_type=InvestmentType.CRYPTO,
                risk_level=RiskLevel.HIGH,
                invested_amount=Decimal("500"),
                current_value=Decimal("1000"),
            ),
        ]

    def test_no_filters_selects_everything(self, portfolio):
        assert len(engine.filter_investments(portfolio)) == 3
        assert len(engine.filter_investments(portfolio, PortfolioFilters(investment_type="all"))) == 3

    def test_filter_by_type_and_risk(self, portfolio):
        selected = engine.filter_investments(
            portfolio, PortfolioFilters(investment_type="crypto", risk_level="high"),
        )
        assert [i.name for i in selected] == ["Bitcoin"]

    def test_category_and_search_are_case_insensitive(self, portfolio):
        by_category = engine.filter_investments(portfolio, PortfolioFilters(category="index"))
        by_ticker = engine.filter_investments(portfolio, PortfolioFilters(search="acme"))
        by_sector = engine.filter_investments(portfolio, PortfolioFilters(search="TECH"))
        assert [i.name for i in by_category] == ["Index Fund"]
        assert [i.name for i in by_ticker] == ["Acme Corp"]
        assert [i.name for i in by_sector] == ["Acme Corp"]

    def test_summary(self, portfolio):
        summary = engine.portfolio_summary(portfolio)
        assert summary.total_invested == Decimal("3500")
        assert summary.current_value == Decimal("4000")
        assert summary.total_pnl == Decimal("500")
        assert summary.count == 3
        assert summary.sip_count == 1

    def test_summary_of_empty_selection(self, portfolio):
        summary = engine.portfolio_summary(portfolio, PortfolioFilters(search="nothing"))
        assert summary.count == 0
        assert summary.pnl_percent == Decimal("0")

    def test_asset_allocation(self, portfolio):
        allocation = engine.asset_allocation(portfolio)
        assert [a.investment_type for a in allocation] == [
            InvestmentType.MUTUAL_FUND,
            InvestmentType.STOCKS,
            InvestmentType.CRYPTO,
        ]
        assert allocation[0].percentage == Decimal("45")
        assert allocation[2].pnl_percent == Decimal("100")
        assert sum(a.percentage for a in allocation) == Decimal("100")
