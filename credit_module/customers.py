"""
Customer Management Module

Manages customer records and their credit lines: available credit checks
before a loan is granted, and the used-credit balance that loans reserve and
payments release.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import uuid

from .exceptions import InsufficientCreditError, InvalidArgumentError, NotFoundError
from .logging_config import get_logger, log_action
from .money import ZERO, Amount, format_amount, to_decimal
from .storage import StorageInterface, StorageRecord


@dataclass
class Customer(StorageRecord):
    """
    Customer with a credit line.

    ``used_credit_limit`` never exceeds ``credit_limit`` after a committed
    loan creation and never drops below zero.
    """
    name: str
    surname: str
    credit_limit: Decimal
    used_credit_limit: Decimal = ZERO

    @property
    def full_name(self) -> str:
        """Get customer's full name"""
        return f"{self.name} {self.surname}"

    @property
    def available_credit(self) -> Decimal:
        """Credit still available for new loans"""
        return self.credit_limit - self.used_credit_limit

    def can_borrow(self, total_loan_amount: Decimal) -> bool:
        return self.available_credit >= total_loan_amount

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        data = cls._parse_timestamps(data)
        data['credit_limit'] = Decimal(data['credit_limit'])
        data['used_credit_limit'] = Decimal(data['used_credit_limit'])
        return cls(**data)


class CustomerStore:
    """
    Customer persistence plus the credit-line guard and reconciler
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "customers"
        self.logger = get_logger("credit_module.customers")

    def create_customer(self, name: str, surname: str, credit_limit: Amount) -> Customer:
        """
        Create a new customer with an unused credit line

        Args:
            name: Customer's first name
            surname: Customer's last name
            credit_limit: Total credit line

        Returns:
            Created Customer object
        """
        credit_limit = to_decimal(credit_limit)
        if credit_limit < ZERO:
            raise InvalidArgumentError("Credit limit must not be negative")

        now = datetime.now(timezone.utc)
        customer = Customer(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            name=name,
            surname=surname,
            credit_limit=credit_limit,
        )
        self.save(customer)

        log_action(
            self.logger, "info", "Customer created",
            action="create_customer", resource=f"customer:{customer.id}",
            extra={"credit_limit": format_amount(credit_limit)}
        )
        return customer

    def find(self, customer_id: str) -> Optional[Customer]:
        """Get customer by ID, or None"""
        data = self.storage.load(self.table_name, customer_id)
        if data:
            return Customer.from_dict(data)
        return None

    def get(self, customer_id: str) -> Customer:
        """Get customer by ID, raising NotFoundError if absent"""
        customer = self.find(customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    def save(self, customer: Customer) -> Customer:
        self.storage.save(self.table_name, customer.id, customer.to_dict())
        return customer

    def list_customers(self) -> List[Customer]:
        return [Customer.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def ensure_available_credit(self, customer: Customer, total_loan_amount: Decimal) -> None:
        """Raise InsufficientCreditError if the loan does not fit the credit line"""
        if not customer.can_borrow(total_loan_amount):
            log_action(
                self.logger, "warning", "Insufficient credit limit",
                action="credit_check", resource=f"customer:{customer.id}",
                extra={
                    "available_credit": format_amount(customer.available_credit),
                    "requested": format_amount(total_loan_amount),
                }
            )
            raise InsufficientCreditError("Insufficient credit limit")

    def reserve_credit(self, customer: Customer, amount: Decimal) -> Customer:
        """Commit part of the credit line to a new loan"""
        customer.used_credit_limit = customer.used_credit_limit + amount
        customer.updated_at = datetime.now(timezone.utc)
        return self.save(customer)

    def release_credit(self, customer: Customer, principal_paid: Decimal) -> Customer:
        """Return repaid principal to the credit line, never going below zero"""
        customer.used_credit_limit = max(ZERO, customer.used_credit_limit - principal_paid)
        customer.updated_at = datetime.now(timezone.utc)
        return self.save(customer)
