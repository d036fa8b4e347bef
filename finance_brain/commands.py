"""
Finance Commands

Thin handlers behind the host's command names:

    Finance: Initialize              -> FinanceCommands.initialize
    Finance: Add Account             -> FinanceCommands.add_account
    Finance: Add Investment Account  -> FinanceCommands.add_investment_account
    expense                          -> FinanceCommands.record_expense
    income                           -> FinanceCommands.record_income
    Finance: Summary                 -> FinanceCommands.summary

The host is responsible for registering the names and for showing
results to the user. These handlers only read and write records.
"""

from typing import Optional

from pydantic import BaseModel

from finance_brain.codec.converters import format_currency
from finance_brain.config import FinanceSettings, get_settings
from finance_brain.exceptions import NotInitializedError
from finance_brain.log import get_logger
from finance_brain.models.finance import (
    Account,
    FinanceSummary,
    Holding,
    InvestmentAccount,
    Transaction,
    TransactionType,
)
from finance_brain.queries import FinanceAggregator
from finance_brain.records import RecordScanner, RecordWriter
from finance_brain.services.storage import RecordStoreInterface, StoredRecord


logger = get_logger(__name__)

# Sub-page name -> heading written as its first block
SUB_PAGES: tuple[tuple[str, str], ...] = (
    ("Dashboard", "# 📊 Finance Dashboard"),
    ("Accounts", "# 🏦 Accounts"),
    ("Investments", "# 📈 Investments"),
    ("Transactions", "# 🧾 Transactions"),
    ("Statements", "# 📄 Statements"),
)


class InitializationResult(BaseModel):
    """Outcome of 'Finance: Initialize'."""

    created: list[str]
    existing: list[str]

    @property
    def already_initialized(self) -> bool:
        return not self.created


class FinanceCommands:
    """
    Command handlers bound to one store.

    Writes go under the finance sub-pages, so every add/record command
    requires 'Finance: Initialize' to have run first.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        aggregator: Optional[FinanceAggregator] = None,
        settings: Optional[FinanceSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings()
        self._writer = RecordWriter(store)
        self._aggregator = aggregator or FinanceAggregator(
            RecordScanner(store, self._settings),
            self._settings,
        )

    async def initialize(self) -> InitializationResult:
        """
        Create the root finance page and its sub-pages if missing.

        Safe to run repeatedly; existing pages are left untouched.
        """
        created: list[str] = []
        existing: list[str] = []

        pages = [(self._settings.root_page, "# 💰 Finance Brain")]
        pages += [(self._settings.page_name(name), heading) for name, heading in SUB_PAGES]

        for page_name, heading in pages:
            if await self._store.get_record(page_name) is not None:
                existing.append(page_name)
                continue

            page = await self._store.create_record(page_name)
            if page is None:
                logger.error("page_create_failed", page=page_name)
                continue

            await self._store.create_child(page.id, heading)
            created.append(page_name)

        logger.info("finance_initialized", created=created, existing=existing)
        return InitializationResult(created=created, existing=existing)

    async def _require_page(self, section: str) -> StoredRecord:
        page_name = self._settings.page_name(section)
        page = await self._store.get_record(page_name)
        if page is None:
            logger.warning("finance_not_initialized", page=page_name)
            raise NotInitializedError(page_name)
        return page

    async def add_account(self, account: Account) -> Optional[StoredRecord]:
        page = await self._require_page("Accounts")
        return await self._writer.write_entity(page.id, account, account.name)

    async def add_investment_account(
        self,
        account: InvestmentAccount,
    ) -> Optional[StoredRecord]:
        page = await self._require_page("Investments")
        return await self._writer.write_entity(page.id, account, account.name)

    async def add_holding(self, holding: Holding) -> Optional[StoredRecord]:
        page = await self._require_page("Investments")
        return await self._writer.write_entity(page.id, holding, holding.symbol)

    async def _record_transaction(
        self,
        transaction: Transaction,
        expected: TransactionType,
    ) -> Optional[StoredRecord]:
        if transaction.type != expected:
            raise ValueError(
                f"Expected a {expected.value} transaction, got {transaction.type.value}"
            )
        page = await self._require_page("Transactions")
        content = transaction.merchant or transaction.category or expected.value
        return await self._writer.write_entity(page.id, transaction, content)

    async def record_expense(self, transaction: Transaction) -> Optional[StoredRecord]:
        return await self._record_transaction(transaction, TransactionType.EXPENSE)

    async def record_income(self, transaction: Transaction) -> Optional[StoredRecord]:
        return await self._record_transaction(transaction, TransactionType.INCOME)

    async def summary(self) -> tuple[FinanceSummary, list[str]]:
        """
        Compute the summary and render it as display lines.

        Returns:
            (summary, lines) where lines are ready to show the user
        """
        summary = await self._aggregator.get_finance_summary()
        currency = self._settings.currency

        lines = [
            f"Net Worth: {format_currency(summary.net_worth, currency)}",
            f"Liquid Cash: {format_currency(summary.liquid_cash, currency)}",
            f"Investments: {format_currency(summary.total_investments, currency)}",
            f"Total Debt: {format_currency(summary.total_debt, currency)}",
            f"Available Credit: {format_currency(summary.available_credit, currency)}",
            f"Monthly Burn Rate: {format_currency(summary.monthly_burn_rate, currency)}",
            f"Cash Flow: {format_currency(summary.cash_flow, currency)}",
        ]
        return summary, lines
