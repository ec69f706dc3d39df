"""
Loan Module

Handles loan creation against a customer's credit line, installment schedule
generation, payment processing with early-payment discounts and late-payment
penalties, and the ownership queries the authorization layer relies on.
"""

from decimal import Decimal
from datetime import datetime, timezone, date
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import uuid

from .config import CreditModuleConfig, get_config
from .customers import CustomerStore, Customer
from .exceptions import InvalidArgumentError, NotFoundError
from .logging_config import get_logger, log_action
from .money import ZERO, Amount, format_amount, to_decimal
from .payments import PaymentResult, allocate_payment, select_payable_installments
from .schedule import build_installment_schedule, calculate_total_loan_amount
from .storage import StorageInterface, StorageRecord
from .users import UserStore


def _parse_date(value: Optional[str]) -> Optional[date]:
    if value:
        return date.fromisoformat(value)
    return None


@dataclass
class Loan(StorageRecord):
    """Loan granted to a customer; ``is_paid`` is the only field that changes"""
    customer_id: str
    loan_amount: Decimal              # principal x (1 + interest rate)
    number_of_installments: int
    create_date: date
    is_paid: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Loan':
        data = cls._parse_timestamps(data)
        data['loan_amount'] = Decimal(data['loan_amount'])
        data['create_date'] = date.fromisoformat(data['create_date'])
        return cls(**data)


@dataclass
class LoanInstallment(StorageRecord):
    """One scheduled installment of a loan"""
    loan_id: str
    amount: Decimal
    due_date: date
    paid_amount: Decimal = ZERO
    payment_date: Optional[date] = None
    is_paid: bool = False

    def mark_paid(self, paid_amount: Decimal, payment_date: date) -> None:
        if self.is_paid:
            raise ValueError(f"Installment {self.id} is already paid")
        self.paid_amount = paid_amount
        self.payment_date = payment_date
        self.is_paid = True
        self.updated_at = datetime.now(timezone.utc)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LoanInstallment':
        data = cls._parse_timestamps(data)
        data['amount'] = Decimal(data['amount'])
        data['paid_amount'] = Decimal(data['paid_amount'])
        data['due_date'] = date.fromisoformat(data['due_date'])
        data['payment_date'] = _parse_date(data.get('payment_date'))
        return cls(**data)


class LoanStore:
    """Loan persistence"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "loans"

    def find(self, loan_id: str) -> Optional[Loan]:
        data = self.storage.load(self.table_name, loan_id)
        if data:
            return Loan.from_dict(data)
        return None

    def get(self, loan_id: str) -> Loan:
        loan = self.find(loan_id)
        if loan is None:
            raise NotFoundError("Loan not found")
        return loan

    def save(self, loan: Loan) -> Loan:
        self.storage.save(self.table_name, loan.id, loan.to_dict())
        return loan

    def list_by_customer(self, customer_id: str) -> List[Loan]:
        loans = [Loan.from_dict(data) for data in self.storage.find(self.table_name, {"customer_id": customer_id})]
        loans.sort(key=lambda loan: loan.created_at)
        return loans


class InstallmentStore:
    """Installment persistence"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "loan_installments"

    def save(self, installment: LoanInstallment) -> LoanInstallment:
        self.storage.save(self.table_name, installment.id, installment.to_dict())
        return installment

    def list_by_loan(self, loan_id: str) -> List[LoanInstallment]:
        """All installments of a loan, earliest due first"""
        installments = [
            LoanInstallment.from_dict(data)
            for data in self.storage.find(self.table_name, {"loan_id": loan_id})
        ]
        installments.sort(key=lambda installment: installment.due_date)
        return installments


class LoanService:
    """
    Loan lifecycle: creation against the credit line and payment allocation

    Every mutating call runs inside ``storage.atomic()``. Callers that need a
    wider transaction can open their own ``atomic()`` scope around the call;
    the service joins it.
    """

    def __init__(
        self,
        storage: StorageInterface,
        customer_store: CustomerStore,
        loan_store: LoanStore,
        installment_store: InstallmentStore,
        user_store: UserStore,
        config: Optional[CreditModuleConfig] = None
    ):
        self.storage = storage
        self.customer_store = customer_store
        self.loan_store = loan_store
        self.installment_store = installment_store
        self.user_store = user_store
        self.config = config or get_config()
        self.logger = get_logger("credit_module.loans")

    def create_loan(
        self,
        customer_id: str,
        amount: Amount,
        interest_rate: Amount,
        installments: int,
        create_date: Optional[date] = None
    ) -> Loan:
        """
        Create a loan and its installment schedule

        Args:
            customer_id: Borrower customer ID
            amount: Principal
            interest_rate: Flat rate applied once, between 0.1 and 0.5
            installments: Number of monthly installments (6, 9, 12 or 24)
            create_date: Creation date (defaults to today)

        Returns:
            Created Loan object
        """
        create_date = create_date or date.today()

        with self.storage.atomic():
            customer = self._validate_customer(customer_id)
            amount = to_decimal(amount)
            interest_rate = to_decimal(interest_rate)
            self._validate_loan_parameters(amount, interest_rate, installments)

            total_loan_amount = calculate_total_loan_amount(amount, interest_rate)
            self.customer_store.ensure_available_credit(customer, total_loan_amount)

            loan = self._save_loan(customer_id, total_loan_amount, installments, create_date)
            self._create_installments(loan, total_loan_amount, installments, create_date)

            self.customer_store.reserve_credit(customer, total_loan_amount)

        log_action(
            self.logger, "info", "Loan created",
            action="create_loan", resource=f"loan:{loan.id}",
            extra={
                "customer_id": customer_id,
                "principal": format_amount(amount),
                "interest_rate": format_amount(interest_rate),
                "loan_amount": format_amount(total_loan_amount),
                "installments": installments,
            }
        )
        return loan

    def list_loans(self, customer_id: str) -> List[Loan]:
        return self.loan_store.list_by_customer(customer_id)

    def list_installments(self, loan_id: str) -> List[LoanInstallment]:
        return self.installment_store.list_by_loan(loan_id)

    def pay_loan(
        self,
        loan_id: str,
        payment_amount: Amount,
        payment_date: Optional[date] = None
    ) -> PaymentResult:
        """
        Pay as many payable installments as the amount fully covers

        Args:
            loan_id: Loan ID
            payment_amount: Money paid in
            payment_date: Date of payment (defaults to today)

        Returns:
            PaymentResult summarising installments paid, discounts and penalties
        """
        payment_date = payment_date or date.today()

        with self.storage.atomic():
            # Unknown loans are reported before bad amounts
            loan = self.loan_store.get(loan_id)
            payment_amount = to_decimal(payment_amount)
            if payment_amount <= ZERO:
                raise InvalidArgumentError("Payment amount must be positive")

            payable = select_payable_installments(
                self.installment_store.list_by_loan(loan_id),
                payment_date,
                self.config.payable_window_months
            )

            result = allocate_payment(
                payable, payment_amount, payment_date, self.config.daily_adjustment_rate
            )

            if result.paid_installments:
                for allocation in result.allocations:
                    allocation.installment.mark_paid(allocation.adjusted_amount, payment_date)
                    self.installment_store.save(allocation.installment)
                self._update_loan_and_customer_after_payment(loan, result.total_principal_paid)

            result.loan_paid = loan.is_paid

        log_action(
            self.logger, "info", result.message,
            action="pay_loan", resource=f"loan:{loan_id}",
            extra={
                "payment_amount": format_amount(payment_amount),
                "paid_installments": result.paid_installments,
                "total_paid": format_amount(result.total_paid),
                "total_principal_paid": format_amount(result.total_principal_paid),
                "loan_paid": result.loan_paid,
            }
        )
        return result

    def is_customer_owner(self, username: str, customer_id: str) -> bool:
        """True iff the user exists and acts for ``customer_id``"""
        user = self.user_store.find_by_username(username)
        return user is not None and user.customer_id is not None and user.customer_id == customer_id

    def is_loan_owner(self, username: str, loan_id: str) -> bool:
        """True iff the loan exists and belongs to the user's customer"""
        user = self.user_store.find_by_username(username)
        if user is None or user.customer_id is None:
            return False
        loan = self.loan_store.find(loan_id)
        return loan is not None and loan.customer_id == user.customer_id

    def _validate_customer(self, customer_id: str) -> Customer:
        return self.customer_store.get(customer_id)

    def _validate_loan_parameters(self, amount: Decimal, interest_rate: Decimal, installments: int) -> None:
        if amount <= ZERO:
            raise InvalidArgumentError("Loan amount must be positive")

        min_rate = self.config.min_interest_rate
        max_rate = self.config.max_interest_rate
        if interest_rate < min_rate or interest_rate > max_rate:
            raise InvalidArgumentError(f"Interest rate must be between {min_rate} and {max_rate}")

        allowed = self.config.allowed_installments
        if installments not in allowed:
            raise InvalidArgumentError(
                "Number of installments must be one of " + ", ".join(str(n) for n in allowed)
            )

    def _save_loan(self, customer_id: str, total_loan_amount: Decimal,
                   installments: int, create_date: date) -> Loan:
        now = datetime.now(timezone.utc)
        loan = Loan(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            customer_id=customer_id,
            loan_amount=total_loan_amount,
            number_of_installments=installments,
            create_date=create_date,
            is_paid=False
        )
        return self.loan_store.save(loan)

    def _create_installments(self, loan: Loan, total_loan_amount: Decimal,
                             installments: int, create_date: date) -> None:
        schedule = build_installment_schedule(
            total_loan_amount, installments, create_date, self.config.currency_precision
        )
        now = datetime.now(timezone.utc)
        for entry in schedule:
            self.installment_store.save(LoanInstallment(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                loan_id=loan.id,
                amount=entry.amount,
                due_date=entry.due_date
            ))

    def _update_loan_and_customer_after_payment(self, loan: Loan, total_principal_paid: Decimal) -> None:
        # Re-read the full set: earlier payments may have settled other installments
        if all(installment.is_paid for installment in self.installment_store.list_by_loan(loan.id)):
            loan.is_paid = True
            loan.updated_at = datetime.now(timezone.utc)
            self.loan_store.save(loan)

        customer = self.customer_store.get(loan.customer_id)
        self.customer_store.release_credit(customer, total_principal_paid)
