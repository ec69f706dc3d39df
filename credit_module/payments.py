"""
Payment Allocation Module

Applies a payment to the payable installments of a loan, earliest due first.
Each installment is charged its nominal amount adjusted by a per-day discount
when paid early or a per-day penalty when paid late. Allocation stops at the
first installment the remaining money cannot fully cover; installments are
never partially paid.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List

from .money import ZERO, format_amount, round_half_up
from .schedule import add_months

if TYPE_CHECKING:
    from .loans import LoanInstallment


DEFAULT_ADJUSTMENT_RATE = Decimal('0.001')
DEFAULT_PAYABLE_WINDOW_MONTHS = 3

NO_INSTALLMENTS_MESSAGE = "No installments available for payment."


@dataclass(frozen=True)
class InstallmentAllocation:
    """Money assigned to one installment by a payment"""
    installment: 'LoanInstallment'
    adjustment: Decimal        # negative for a discount, positive for a penalty
    adjusted_amount: Decimal   # what the customer pays for this installment

    @property
    def principal(self) -> Decimal:
        return self.installment.amount


@dataclass
class PaymentResult:
    """Outcome of applying one payment to a loan"""
    paid_installments: int = 0
    total_paid: Decimal = ZERO
    total_discount: Decimal = ZERO
    total_penalty: Decimal = ZERO
    total_principal_paid: Decimal = ZERO
    loan_paid: bool = False
    nothing_payable: bool = False
    allocations: List[InstallmentAllocation] = field(default_factory=list)

    def add(self, allocation: InstallmentAllocation) -> None:
        self.allocations.append(allocation)
        self.paid_installments += 1
        self.total_paid += allocation.adjusted_amount
        self.total_principal_paid += allocation.principal
        if allocation.adjustment < ZERO:
            self.total_discount += -allocation.adjustment
        else:
            self.total_penalty += allocation.adjustment

    @property
    def message(self) -> str:
        if self.nothing_payable:
            return NO_INSTALLMENTS_MESSAGE
        return (
            f"Paid {self.paid_installments} installments, "
            f"total paid: {format_amount(round_half_up(self.total_paid))}. "
            f"Discount: {format_amount(round_half_up(self.total_discount))}, "
            f"Penalty: {format_amount(round_half_up(self.total_penalty))}. "
            f"Loan fully paid: {self.loan_paid}"
        )


def calculate_adjustment(
    amount: Decimal,
    due_date: date,
    payment_date: date,
    rate: Decimal = DEFAULT_ADJUSTMENT_RATE
) -> Decimal:
    """
    Discount (negative) or penalty (positive) for paying on ``payment_date``

    Days are plain calendar days between the two dates. No rounding is applied.
    """
    if payment_date < due_date:
        days_before_due = (due_date - payment_date).days
        return -(amount * rate * days_before_due)
    if payment_date > due_date:
        days_after_due = (payment_date - due_date).days
        return amount * rate * days_after_due
    return ZERO


def select_payable_installments(
    installments: Iterable['LoanInstallment'],
    as_of: date,
    window_months: int = DEFAULT_PAYABLE_WINDOW_MONTHS
) -> List['LoanInstallment']:
    """
    Unpaid installments due strictly before ``as_of`` plus the window,
    earliest due first. Overdue installments are always included.
    """
    cutoff = add_months(as_of, window_months)
    payable = [
        installment for installment in installments
        if not installment.is_paid and installment.due_date < cutoff
    ]
    payable.sort(key=lambda installment: installment.due_date)
    return payable


def allocate_payment(
    installments: List['LoanInstallment'],
    payment_amount: Decimal,
    payment_date: date,
    rate: Decimal = DEFAULT_ADJUSTMENT_RATE
) -> PaymentResult:
    """
    Work out which installments a payment settles

    Args:
        installments: Payable installments in due-date order
        payment_amount: Money available
        payment_date: Date the payment is made
        rate: Daily discount/penalty rate

    Returns:
        PaymentResult with one allocation per settled installment. The
        installments themselves are not modified.
    """
    result = PaymentResult(nothing_payable=not installments)
    remaining = payment_amount

    for installment in installments:
        adjustment = calculate_adjustment(installment.amount, installment.due_date, payment_date, rate)
        adjusted_amount = installment.amount + adjustment

        if remaining < adjusted_amount:
            break

        remaining -= adjusted_amount
        result.add(InstallmentAllocation(
            installment=installment,
            adjustment=adjustment,
            adjusted_amount=adjusted_amount
        ))

    return result
