"""
Ledger aggregation: period totals, running balance, cash gap detection.

Functions here are pure: they take an iterable of transaction rows (model
instances or any object exposing ``id``, ``date``, ``type``, ``amount``,
``status`` and ``include_in_balance``) and never touch the database.
Rows excluded from the balance are ignored by every calculation except
``pending_confirmations``.
"""

import calendar
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ..models import TransactionStatus, TransactionType

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


def month_bounds(period_month: date) -> tuple[date, date]:
    """First and last day of the month containing ``period_month``."""
    days_in_month = calendar.monthrange(period_month.year, period_month.month)[1]
    return (
        period_month.replace(day=1),
        period_month.replace(day=days_in_month),
    )


def _signed(row):
    return row.amount if row.type == TransactionType.INCOME else -row.amount


def _balance_rows(rows):
    """Included rows in walk order: date ascending, insertion order on ties."""
    return sorted(
        (row for row in rows if row.include_in_balance),
        key=lambda row: (row.date, row.id or 0),
    )


def summarize(rows, period_month: date, today: date) -> dict:
    """
    Summarize a space ledger for the month containing ``period_month``.

    ``income`` and ``expense`` cover the month only. ``balance`` is the
    running total over every included row, future planned rows included.
    ``projected_balance`` is the running total at the last row dated on or
    before the month end. ``cash_gap`` is the first point of the walk where
    the running total turns negative on a row dated today or later; dips
    that lie entirely in the past are not reported.

    Args:
        rows: Transactions of the whole space
        period_month: Any day of the viewed month
        today: Reference day for cash gap detection

    Returns:
        dict: income, expense, balance, projected_balance, cash_gap
            (``{"date", "amount"}`` or None), avg_daily_income,
            avg_daily_expense
    """
    month_start, month_end = month_bounds(period_month)
    ordered = _balance_rows(rows)

    income = ZERO
    expense = ZERO
    for row in ordered:
        if month_start <= row.date <= month_end:
            if row.type == TransactionType.INCOME:
                income += row.amount
            else:
                expense += row.amount

    running_balance = ZERO
    projected_balance = ZERO
    cash_gap = None
    for row in ordered:
        running_balance += _signed(row)
        if row.date <= month_end:
            projected_balance = running_balance
        if cash_gap is None and running_balance < 0 and row.date >= today:
            cash_gap = {"date": row.date, "amount": running_balance}

    days_in_month = Decimal(month_end.day)
    return {
        "income": income,
        "expense": expense,
        "balance": running_balance,
        "projected_balance": projected_balance,
        "cash_gap": cash_gap,
        "avg_daily_income": (income / days_in_month).quantize(
            CENTS, rounding=ROUND_HALF_UP
        ),
        "avg_daily_expense": (expense / days_in_month).quantize(
            CENTS, rounding=ROUND_HALF_UP
        ),
    }


def pending_confirmations(rows, today: date) -> list:
    """Planned rows dated today or earlier, oldest first."""
    return sorted(
        (
            row
            for row in rows
            if row.status == TransactionStatus.PLANNED and row.date <= today
        ),
        key=lambda row: (row.date, row.id or 0),
    )


def balance_on(rows, day: date) -> Decimal:
    """Running balance at the end of ``day``."""
    return sum(
        (_signed(row) for row in _balance_rows(rows) if row.date <= day), ZERO
    )


def daily_balances(rows, start: date, end: date) -> list[dict]:
    """
    End-of-day running balance for every day of ``[start, end]``.

    Rows before ``start`` feed the opening balance.

    Returns:
        list[dict]: ``{"date", "income", "expense", "balance"}`` per day
    """
    ordered = _balance_rows(rows)
    balance = sum((_signed(row) for row in ordered if row.date < start), ZERO)

    per_day = {}
    for row in ordered:
        if start <= row.date <= end:
            income, expense = per_day.get(row.date, (ZERO, ZERO))
            if row.type == TransactionType.INCOME:
                income += row.amount
            else:
                expense += row.amount
            per_day[row.date] = (income, expense)

    days = []
    current = start
    while current <= end:
        income, expense = per_day.get(current, (ZERO, ZERO))
        balance += income - expense
        days.append(
            {
                "date": current,
                "income": income,
                "expense": expense,
                "balance": balance,
            }
        )
        current += timedelta(days=1)
    return days
