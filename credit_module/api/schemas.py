"""
Pydantic schemas for API requests and responses

Decimal amounts are exchanged as strings.
"""

from typing import Optional
from pydantic import BaseModel, Field

from ..customers import Customer
from ..loans import Loan, LoanInstallment
from ..money import format_amount
from ..payments import PaymentResult
from ..users import User, UserRole


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str


class CreateCustomerRequest(BaseModel):
    name: str
    surname: str
    credit_limit: str = Field(..., description="Decimal amount as string")


class CustomerResponse(BaseModel):
    id: str
    name: str
    surname: str
    credit_limit: str
    used_credit_limit: str

    @classmethod
    def from_customer(cls, customer: Customer) -> 'CustomerResponse':
        return cls(
            id=customer.id,
            name=customer.name,
            surname=customer.surname,
            credit_limit=format_amount(customer.credit_limit),
            used_credit_limit=format_amount(customer.used_credit_limit)
        )


class LoanResponse(BaseModel):
    id: str
    customer_id: str
    loan_amount: str
    number_of_installments: int
    create_date: str
    is_paid: bool

    @classmethod
    def from_loan(cls, loan: Loan) -> 'LoanResponse':
        return cls(
            id=loan.id,
            customer_id=loan.customer_id,
            loan_amount=format_amount(loan.loan_amount),
            number_of_installments=loan.number_of_installments,
            create_date=loan.create_date.isoformat(),
            is_paid=loan.is_paid
        )


class InstallmentResponse(BaseModel):
    id: str
    loan_id: str
    amount: str
    paid_amount: str
    due_date: str
    payment_date: Optional[str] = None
    is_paid: bool

    @classmethod
    def from_installment(cls, installment: LoanInstallment) -> 'InstallmentResponse':
        return cls(
            id=installment.id,
            loan_id=installment.loan_id,
            amount=format_amount(installment.amount),
            paid_amount=format_amount(installment.paid_amount),
            due_date=installment.due_date.isoformat(),
            payment_date=installment.payment_date.isoformat() if installment.payment_date else None,
            is_paid=installment.is_paid
        )


class PaymentResultResponse(BaseModel):
    message: str
    paid_installments: int
    total_paid: str
    total_discount: str
    total_penalty: str
    loan_paid: bool

    @classmethod
    def from_result(cls, result: PaymentResult) -> 'PaymentResultResponse':
        return cls(
            message=result.message,
            paid_installments=result.paid_installments,
            total_paid=format_amount(result.total_paid),
            total_discount=format_amount(result.total_discount),
            total_penalty=format_amount(result.total_penalty),
            loan_paid=result.loan_paid
        )


class CreateUserRequest(BaseModel):
    username: str
    password: str = Field(..., min_length=1)
    role: UserRole
    customer_id: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    username: str
    role: UserRole
    customer_id: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> 'UserResponse':
        return cls(id=user.id, username=user.username, role=user.role, customer_id=user.customer_id)
