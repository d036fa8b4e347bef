"""Tests for the aggregation engine."""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from finance_brain.config import FinanceSettings
from finance_brain.models.finance import FinanceSummary
from finance_brain.queries import (
    FinanceAggregator,
    amount_since,
    asset_allocation,
    available_credit,
    categorize_symbol,
    credit_card_debt,
    investment_performance,
    liquid_cash,
    loan_accounts,
    loan_debt,
    net_worth,
    spending_by_category,
    total_investments,
)
from finance_brain.records import RecordScanner
from tests.factories import (
    TODAY,
    account_props,
    days_ago,
    holding_props,
    investment_account_props,
    transaction_props,
)


class ExplodingScanner(RecordScanner):
    """A scanner that fails for one record type."""

    def __init__(self, store, settings, failing_type: str):
        super().__init__(store, settings)
        self._failing_type = failing_type

    async def scan_by_type(self, type_tag):
        if type_tag == self._failing_type:
            raise RuntimeError("unexpected failure")
        return await super().scan_by_type(type_tag)


def seed_portfolio(store):
    """A small but complete set of records."""
    store.add_record(account_props("checking", "3500.00", name="Checking"))
    store.add_record(account_props("savings", "12000.00", name="Savings"))
    store.add_record(account_props("credit-card", "1250.50", name="Visa", **{"credit-limit": "5000"}))
    store.add_record(account_props("credit-card", "200", name="Store Card", **{"credit-limit": "0"}))
    store.add_record(account_props("loan", "8000", name="Car Loan"))
    store.add_record(investment_account_props("17605.00"))
    store.add_record(transaction_props("expense", "125.50", days_ago(5), category="Groceries"))
    store.add_record(transaction_props("expense", "999.00", days_ago(60), category="Travel"))
    store.add_record(transaction_props("income", "4000.00", days_ago(10)))
    store.add_record(transaction_props("investment", "500.00", days_ago(3)))
    store.add_record(holding_props("VTI", "11025"))
    store.add_record(holding_props("VXUS", "4420"))
    store.add_record(holding_props("BND", "2160"))


class TestAccountReducers:
    """Pure reducers over account property maps."""

    def test_liquid_cash(self):
        accounts = [
            account_props("checking", "3500.00"),
            account_props("savings", "12000.00"),
        ]
        assert liquid_cash(accounts) == Decimal("15500.00")

    def test_liquid_cash_ignores_other_types(self):
        accounts = [
            account_props("checking", "100"),
            account_props("credit-card", "50"),
            account_props("Checking", "1000"),  # no case folding
            account_props("checking-plus", "1000"),  # no partial match
        ]
        assert liquid_cash(accounts) == Decimal("100")

    def test_missing_and_malformed_balances_count_as_zero(self):
        accounts = [
            account_props("checking", None),
            account_props("checking", "oops"),
            account_props("savings", "$1,000.00"),
            {"type": "account", "account-type": "savings"},
        ]
        assert liquid_cash(accounts) == Decimal("1000.00")

    def test_out_of_range_balance_counts_as_zero(self):
        accounts = [
            account_props("checking", "100"),
            account_props("savings", "1e1000000"),
        ]
        assert liquid_cash(accounts) == Decimal("100")

    def test_compact_account_type_key(self):
        accounts = [{"type": "account", "accountType": "savings", "balance": "10"}]
        assert liquid_cash(accounts) == Decimal("10")

    def test_available_credit(self):
        accounts = [
            account_props("credit-card", "1250.50", **{"credit-limit": "5000"}),
        ]
        assert available_credit(accounts) == Decimal("3749.50")

    def test_card_without_limit_contributes_nothing(self):
        accounts = [
            account_props("credit-card", "1250.50", **{"credit-limit": "5000"}),
            account_props("credit-card", "200", **{"credit-limit": "0"}),
            account_props("credit-card", "300"),
            account_props("credit-card", "300", **{"credit-limit": "-100"}),
        ]
        assert available_credit(accounts) == Decimal("3749.50")
        assert credit_card_debt(accounts) == Decimal("2050.50")

    def test_available_credit_ignores_non_cards(self):
        accounts = [account_props("checking", "10", **{"credit-limit": "5000"})]
        assert available_credit(accounts) == 0

    def test_loan_debt_and_accounts(self):
        accounts = [
            account_props("loan", "8000", name="Car"),
            account_props("loan", "150000", name="Mortgage"),
            account_props("checking", "10"),
        ]
        assert loan_debt(accounts) == Decimal("158000")
        assert [a["account-name"] for a in loan_accounts(accounts)] == ["Car", "Mortgage"]

    def test_total_investments(self):
        accounts = [
            investment_account_props("10000.00"),
            investment_account_props("$2,500"),
            investment_account_props(None),
        ]
        assert total_investments(accounts) == Decimal("12500.00")

    def test_net_worth_identity(self):
        accounts = [
            account_props("checking", "3500"),
            account_props("savings", "12000"),
            account_props("credit-card", "1250.50"),
            account_props("loan", "8000"),
        ]
        investments = [investment_account_props("17605")]
        expected = (
            liquid_cash(accounts)
            + total_investments(investments)
            - credit_card_debt(accounts)
            - loan_debt(accounts)
        )
        assert net_worth(
            liquid_cash(accounts),
            total_investments(investments),
            credit_card_debt(accounts),
            loan_debt(accounts),
        ) == expected == Decimal("23854.50")


class TestTransactionReducers:
    """Date-bounded sums and category grouping."""

    def test_amount_since_excludes_old_and_undated(self):
        cutoff = days_ago(30)
        transactions = [
            transaction_props("expense", "125.50", days_ago(5)),
            transaction_props("expense", "999.00", days_ago(60)),
            transaction_props("expense", "10.00", None),
        ]
        assert amount_since(transactions, cutoff) == Decimal("125.50")

    def test_cutoff_day_is_inclusive(self):
        cutoff = days_ago(30)
        transactions = [transaction_props("expense", "7", cutoff)]
        assert amount_since(transactions, cutoff) == Decimal("7")

    def test_malformed_amounts_count_as_zero(self):
        transactions = [
            transaction_props("income", "lots", days_ago(1)),
            transaction_props("income", "$1,000", days_ago(1)),
        ]
        assert amount_since(transactions, days_ago(30)) == Decimal("1000")

    def test_spending_by_category(self):
        cutoff = days_ago(30)
        expenses = [
            transaction_props("expense", "50", days_ago(1), category="Groceries"),
            transaction_props("expense", "25.50", days_ago(2), category="Groceries"),
            transaction_props("expense", "12", days_ago(3)),
            transaction_props("expense", "8", days_ago(3), category=""),
            transaction_props("expense", "500", days_ago(45), category="Travel"),
        ]
        assert spending_by_category(expenses, cutoff) == {
            "Groceries": Decimal("75.50"),
            "Uncategorized": Decimal("20"),
        }


class TestHoldingReducers:
    """Asset allocation and performance."""

    def test_categorize_symbol(self):
        assert categorize_symbol("VOO") == "US Stocks"
        assert categorize_symbol("VWO") == "International Stocks"
        assert categorize_symbol("AGG") == "Bonds"
        assert categorize_symbol("VNQ") == "Real Estate"
        assert categorize_symbol("AAPL") == "Other"
        assert categorize_symbol("vti") == "Other"

    def test_asset_allocation(self):
        holdings = [
            holding_props("VTI", "11025"),
            holding_props("VXUS", "4420"),
            holding_props("BND", "2160"),
        ]
        allocation = asset_allocation(holdings)
        by_category = {a.category: a for a in allocation}

        assert [a.category for a in allocation] == ["US Stocks", "International Stocks", "Bonds"]
        assert float(by_category["US Stocks"].percentage) == pytest.approx(62.62, abs=0.01)
        assert float(by_category["International Stocks"].percentage) == pytest.approx(25.11, abs=0.01)
        assert float(by_category["Bonds"].percentage) == pytest.approx(12.27, abs=0.01)
        assert float(sum(a.percentage for a in allocation)) == pytest.approx(100.0)

    def test_buckets_merge_symbols(self):
        holdings = [
            holding_props("VTI", "100"),
            holding_props("SPY", "100"),
            holding_props("AAPL", "50"),
            holding_props("TSLA", "50"),
        ]
        allocation = asset_allocation(holdings)
        assert [(a.category, a.value) for a in allocation] == [
            ("US Stocks", Decimal("200")),
            ("Other", Decimal("100")),
        ]

    def test_zero_total_gives_zero_percentages(self):
        holdings = [holding_props("VTI", "0"), holding_props("BND", "junk")]
        allocation = asset_allocation(holdings)
        assert len(allocation) == 2
        assert all(a.percentage == 0 for a in allocation)

    def test_no_holdings(self):
        assert asset_allocation([]) == []

    def test_investment_performance(self):
        holdings = [
            holding_props("VTI", "11025", cost_basis="9000"),
            holding_props("BND", "2160", cost_basis="2200"),
        ]
        performance = investment_performance(holdings)
        assert performance.total_invested == Decimal("11200")
        assert performance.current_value == Decimal("13185")
        assert performance.total_gain_loss == Decimal("1985")
        assert performance.unrealized_gains == Decimal("1985")
        assert performance.realized_gains == 0
        assert float(performance.total_gain_loss_percent) == pytest.approx(17.72, abs=0.01)

    def test_investment_performance_without_cost_basis(self):
        performance = investment_performance([holding_props("VTI", "100")])
        assert performance.total_gain_loss_percent == 0


class TestFinanceAggregator:
    """Store-backed aggregation."""

    @pytest.mark.asyncio
    async def test_liquid_cash_scenario(self, store, aggregator):
        store.add_record(account_props("checking", "3500.00"))
        store.add_record(account_props("savings", "12000.00"))

        assert await aggregator.get_liquid_cash() == Decimal("15500.00")

    @pytest.mark.asyncio
    async def test_credit_scenario(self, store, aggregator):
        store.add_record(account_props("credit-card", "1250.50", **{"credit-limit": "5000"}))
        store.add_record(account_props("credit-card", "200", **{"credit-limit": "0"}))

        assert await aggregator.get_available_credit() == Decimal("3749.50")
        assert await aggregator.get_credit_card_debt() == Decimal("1450.50")

    @pytest.mark.asyncio
    async def test_burn_rate_scenario(self, store, aggregator):
        store.add_record(transaction_props("expense", "125.50", days_ago(5)))
        store.add_record(transaction_props("expense", "999.00", days_ago(60)))

        assert aggregator.window_cutoff() == "2024-05-31"
        assert await aggregator.get_monthly_expenses() == Decimal("125.50")

    @pytest.mark.asyncio
    async def test_out_of_range_balances_do_not_abort_summary(self, store, aggregator):
        store.add_record(account_props("checking", "3500.00"))
        store.add_record(account_props("savings", "9e999999"))
        store.add_record(account_props("savings", "9e999999"))

        assert await aggregator.get_liquid_cash() == Decimal("3500.00")
        summary = await aggregator.get_finance_summary()
        assert summary.liquid_cash == Decimal("3500.00")
        assert summary.net_worth == Decimal("3500.00")

    def test_default_clock_is_utc(self, scanner, settings):
        aggregator = FinanceAggregator(scanner, settings)
        expected = (
            datetime.now(timezone.utc).date()
            - timedelta(days=settings.burn_rate_window_days)
        ).isoformat()
        assert aggregator.window_cutoff() == expected

    @pytest.mark.asyncio
    async def test_total_debt(self, store, aggregator):
        seed_portfolio(store)
        assert await aggregator.get_total_debt() == Decimal("9450.50")

    @pytest.mark.asyncio
    async def test_net_worth(self, store, aggregator):
        seed_portfolio(store)
        # 15500 + 17605 - 1450.50 - 8000
        assert await aggregator.get_net_worth() == Decimal("23654.50")

    @pytest.mark.asyncio
    async def test_finance_summary(self, store, aggregator):
        seed_portfolio(store)

        summary = await aggregator.get_finance_summary()

        assert summary.liquid_cash == Decimal("15500.00")
        assert summary.total_investments == Decimal("17605.00")
        assert summary.total_debt == Decimal("9450.50")
        assert summary.net_worth == Decimal("23654.50")
        assert summary.monthly_burn_rate == Decimal("125.50")
        assert summary.cash_flow == Decimal("3874.50")
        assert summary.available_credit == Decimal("3749.50")
        assert summary.net_worth == (
            summary.liquid_cash + summary.total_investments - summary.total_debt
        )

    @pytest.mark.asyncio
    async def test_investment_transactions_are_not_burn(self, store, aggregator):
        store.add_record(transaction_props("investment", "500.00", days_ago(3)))

        summary = await aggregator.get_finance_summary()
        assert summary.monthly_burn_rate == 0
        assert summary.cash_flow == 0

    @pytest.mark.asyncio
    async def test_empty_store_summary(self, aggregator):
        summary = await aggregator.get_finance_summary()
        assert summary.net_worth == 0
        assert summary.cash_flow == 0

    @pytest.mark.asyncio
    async def test_store_failure_contributes_zero(self, store, aggregator):
        seed_portfolio(store)
        store.fail_queries = True

        summary = await aggregator.get_finance_summary()
        assert summary.liquid_cash == 0
        assert summary.net_worth == 0

    @pytest.mark.asyncio
    async def test_composition_failure_gives_all_zero_summary(self, store, settings):
        seed_portfolio(store)
        scanner = ExplodingScanner(store, settings, failing_type="income")
        aggregator = FinanceAggregator(scanner, settings, clock=lambda: TODAY)

        summary = await aggregator.get_finance_summary()

        zero = FinanceSummary.zero()
        assert summary.model_dump(exclude={"last_updated"}) == zero.model_dump(
            exclude={"last_updated"}
        )
        assert summary.last_updated is not None

    @pytest.mark.asyncio
    async def test_asset_allocation(self, store, aggregator):
        seed_portfolio(store)

        allocation = await aggregator.get_asset_allocation()
        assert {a.category for a in allocation} == {
            "US Stocks", "International Stocks", "Bonds",
        }
        assert float(sum(a.percentage for a in allocation)) == pytest.approx(100.0)

    @pytest.mark.asyncio
    async def test_spending_by_category(self, store, aggregator):
        seed_portfolio(store)
        assert await aggregator.get_spending_by_category() == {
            "Groceries": Decimal("125.50"),
        }

    @pytest.mark.asyncio
    async def test_income_from_explicit_cutoff(self, store, aggregator):
        seed_portfolio(store)
        assert await aggregator.get_income_from(days_ago(30)) == Decimal("4000.00")
        assert await aggregator.get_income_from(days_ago(1)) == 0

    @pytest.mark.asyncio
    async def test_window_follows_settings(self, store, scanner):
        settings = FinanceSettings(burn_rate_window_days=7, query_retry_wait_seconds=0)
        aggregator = FinanceAggregator(scanner, settings, clock=lambda: date(2024, 6, 30))
        store.add_record(transaction_props("expense", "10", "2024-06-25"))
        store.add_record(transaction_props("expense", "20", "2024-06-20"))

        assert await aggregator.get_monthly_expenses() == Decimal("10")

    @pytest.mark.asyncio
    async def test_loan_accounts(self, store, aggregator):
        seed_portfolio(store)
        loans = await aggregator.get_loan_accounts()
        assert [loan["account-name"] for loan in loans] == ["Car Loan"]
