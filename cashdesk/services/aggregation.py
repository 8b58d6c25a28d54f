"""Aggregation over in-memory transaction lists.

Every function here is pure: it takes already-fetched transactions (and, where needed, an
externally supplied sales figure) and returns totals, percent changes or chart series.
"""

import calendar
from collections.abc import Iterable
from datetime import datetime, time, timedelta
from decimal import Decimal

from cashdesk.core.currency import format_currency
from cashdesk.core.models import (
    PAYMENT_TYPES,
    CategoryStats,
    DashboardStats,
    MonthPoint,
    PeriodMetrics,
    ProfitOrLoss,
    Shift,
    ShiftSummary,
    Transaction,
    TransactionType,
)
from cashdesk.services.category_tags import has_tag, mentions_word

ZERO = Decimal(0)


def total_by_type(transactions: Iterable[Transaction], txn_type: TransactionType | str) -> Decimal:
    """Sum of amounts of the transactions with the given type."""
    wanted = TransactionType(txn_type)
    return sum((t.amount for t in transactions if t.type == wanted), ZERO)


def totals_by_type(transactions: Iterable[Transaction]) -> dict[TransactionType, Decimal]:
    """Totals for every transaction type, zero for types without rows."""
    totals = dict.fromkeys(TransactionType, ZERO)
    for t in transactions:
        totals[t.type] += t.amount
    return totals


def period_metrics(transactions: Iterable[Transaction]) -> PeriodMetrics:
    """Income (payment types), expenses (``xarajat``) and net over the given rows."""
    income = ZERO
    expenses = ZERO
    for t in transactions:
        if t.type in PAYMENT_TYPES:
            income += t.amount
        else:
            expenses += t.amount
    return PeriodMetrics(income=income, expenses=expenses, net=income - expenses)


def net_profit(transactions: Iterable[Transaction]) -> Decimal:
    """Non-expense total minus ``xarajat`` total."""
    return period_metrics(transactions).net


def profit_or_loss(sales: Decimal, total_expenses: Decimal) -> ProfitOrLoss:
    amount = sales - total_expenses
    return ProfitOrLoss(amount=amount, label="profit" if amount >= 0 else "loss")


def percent_change(current: Decimal | float, previous: Decimal | float) -> str:
    """Signed percent change with one decimal, e.g. ``"+12.5%"`` or ``"-10.0%"``."""
    if previous == 0:
        return "+100%" if current > 0 else "0%"
    percent = float((Decimal(str(current)) - Decimal(str(previous))) / Decimal(str(previous)) * 100)
    sign = "+" if percent > 0 else ""
    return f"{sign}{percent:.1f}%"


def monthly_series(transactions: Iterable[Transaction], year: int) -> list[MonthPoint]:
    """Income/expenses/net per calendar month of ``year``, always twelve points Jan..Dec."""
    buckets: dict[int, list[Transaction]] = {month: [] for month in range(1, 13)}
    for t in transactions:
        if t.date.year == year:
            buckets[t.date.month].append(t)
    series = []
    for month, rows in buckets.items():
        metrics = period_metrics(rows)
        series.append(
            MonthPoint(
                month=month,
                name=calendar.month_abbr[month],
                income=metrics.income,
                expenses=metrics.expenses,
                net=metrics.net,
            )
        )
    return series


def transactions_for_category(transactions: Iterable[Transaction], category_name: str) -> list[Transaction]:
    """Expenses attributed to a category by column, by ``[Name]`` tag, or by the bare name as a word (case-insensitive)."""
    matched = []
    for t in transactions:
        if not t.is_expense:
            continue
        if (
            (t.category or "").casefold() == category_name.casefold()
            or has_tag(t.description, category_name)
            or mentions_word(t.description, category_name)
        ):
            matched.append(t)
    return matched


def previous_window(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """The window of equal length immediately before ``start``..``end``."""
    duration = end - start
    return start - duration, end - duration


def day_window(day: datetime) -> tuple[datetime, datetime]:
    """Start and end of the calendar day containing ``day``."""
    return datetime.combine(day.date(), time.min), datetime.combine(day.date(), time.max)


def yesterday_windows(now: datetime) -> tuple[tuple[datetime, datetime], tuple[datetime, datetime]]:
    """Windows for yesterday and the day before, relative to ``now``."""
    return day_window(now - timedelta(days=1)), day_window(now - timedelta(days=2))


def dashboard_stats(
    current: list[Transaction],
    previous: list[Transaction],
    yesterday: list[Transaction],
    day_before: list[Transaction],
) -> DashboardStats:
    """Headline figures for ``current`` with percent changes against the preceding windows."""
    now_metrics = period_metrics(current)
    prev_metrics = period_metrics(previous)
    yesterday_income = period_metrics(yesterday).income
    day_before_income = period_metrics(day_before).income
    return DashboardStats(
        income=now_metrics.income,
        expenses=now_metrics.expenses,
        net=now_metrics.net,
        yesterday_income=yesterday_income,
        income_change=percent_change(now_metrics.income, prev_metrics.income),
        expenses_change=percent_change(now_metrics.expenses, prev_metrics.expenses),
        net_change=percent_change(now_metrics.net, prev_metrics.net),
        yesterday_change=percent_change(yesterday_income, day_before_income),
    )


def category_stats(transactions: Iterable[Transaction], category_name: str, sales: Decimal = ZERO) -> CategoryStats:
    """Count, total and average of a category's expenses, and profit/loss against its sales."""
    rows = transactions_for_category(transactions, category_name)
    total = sum((t.amount for t in rows), ZERO)
    average = (total / len(rows)).quantize(Decimal("0.01")) if rows else ZERO
    return CategoryStats(
        category=category_name,
        count=len(rows),
        total=total,
        average=average,
        sales=sales,
        profit_or_loss=profit_or_loss(sales, total),
    )


def shift_summary(shift: Shift, transactions: list[Transaction], currency: str = "UZS") -> ShiftSummary:
    """Totals and resolved transactions of a shift in the shape the receipt printer consumes."""
    metrics = period_metrics(transactions)
    return ShiftSummary(
        shift=shift,
        totals_by_type=totals_by_type(transactions),
        income=metrics.income,
        expenses=metrics.expenses,
        net_profit=metrics.net,
        currency=currency,
        net_profit_display=format_currency(metrics.net, currency),
        transactions=transactions,
    )
