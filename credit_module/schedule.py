"""
Installment Schedule Module

Total loan amount calculation and equal-installment schedule generation.
Installments fall due on the first day of consecutive months, starting with
the month after the loan is created.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass
from typing import List
import calendar

from .money import DEFAULT_PRECISION, round_half_up


@dataclass(frozen=True)
class ScheduledInstallment:
    """Single entry in an installment schedule"""
    number: int          # 1-based position in the schedule
    due_date: date
    amount: Decimal


def calculate_total_loan_amount(amount: Decimal, interest_rate: Decimal) -> Decimal:
    """Principal plus interest. No rounding is applied here."""
    return amount * (Decimal('1') + interest_rate)


def add_months(start_date: date, months: int) -> date:
    """Add months to a date, handling month-end edge cases"""
    month = start_date.month - 1 + months
    year = start_date.year + month // 12
    month = month % 12 + 1
    day = min(start_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def first_due_date(create_date: date) -> date:
    """First day of the month following ``create_date``"""
    return add_months(create_date.replace(day=1), 1)


def calculate_installment_amount(total_loan_amount: Decimal, installments: int,
                                 precision: int = DEFAULT_PRECISION) -> Decimal:
    """
    Equal share of the total, rounded half-up.

    The rounded shares may not add back up to the total; the difference is
    left in place rather than pushed onto the last installment.
    """
    return round_half_up(total_loan_amount / Decimal(installments), precision)


def build_installment_schedule(
    total_loan_amount: Decimal,
    installments: int,
    create_date: date,
    precision: int = DEFAULT_PRECISION
) -> List[ScheduledInstallment]:
    """
    Split a total loan amount into equal monthly installments

    Args:
        total_loan_amount: Principal plus interest
        installments: Number of installments
        create_date: Loan creation date
        precision: Currency decimal places for the per-installment amount

    Returns:
        Exactly ``installments`` entries ordered by due date
    """
    if installments <= 0:
        raise ValueError("Number of installments must be positive")

    installment_amount = calculate_installment_amount(total_loan_amount, installments, precision)
    start = first_due_date(create_date)

    return [
        ScheduledInstallment(
            number=index + 1,
            due_date=add_months(start, index),
            amount=installment_amount
        )
        for index in range(installments)
    ]
