"""
Loan endpoints
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Depends, Query

from .auth import CreditSystem, get_credit_system, require_access
from .schemas import InstallmentResponse, LoanResponse, MessageResponse, PaymentResultResponse
from ..exceptions import InsufficientCreditError, InvalidArgumentError, NotFoundError
from ..rbac import ResourceKind


router = APIRouter()


@router.post("/create", response_model=MessageResponse)
async def create_loan(
    customer_id: str = Query(...),
    amount: Decimal = Query(...),
    interest_rate: Decimal = Query(...),
    installments: int = Query(...),
    system: CreditSystem = Depends(get_credit_system),
    current_user: Optional[str] = Depends(require_access(ResourceKind.CUSTOMER, "customer_id"))
):
    """Create a loan for a customer"""
    try:
        system.loan_service.create_loan(customer_id, amount, interest_rate, installments)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidArgumentError, InsufficientCreditError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return MessageResponse(message="Loan created successfully")


@router.get("/list", response_model=List[LoanResponse])
async def list_loans(
    customer_id: str = Query(...),
    system: CreditSystem = Depends(get_credit_system),
    current_user: Optional[str] = Depends(require_access(ResourceKind.CUSTOMER, "customer_id"))
):
    """List a customer's loans"""
    return [LoanResponse.from_loan(loan) for loan in system.loan_service.list_loans(customer_id)]


@router.get("/{loan_id}/installments", response_model=List[InstallmentResponse])
async def list_installments(
    loan_id: str,
    system: CreditSystem = Depends(get_credit_system),
    current_user: Optional[str] = Depends(require_access(ResourceKind.LOAN, "loan_id"))
):
    """List a loan's installments, earliest due first"""
    return [
        InstallmentResponse.from_installment(installment)
        for installment in system.loan_service.list_installments(loan_id)
    ]


@router.post("/pay", response_model=PaymentResultResponse)
async def pay_loan(
    loan_id: str = Query(...),
    payment_amount: Decimal = Query(...),
    system: CreditSystem = Depends(get_credit_system),
    current_user: Optional[str] = Depends(require_access(ResourceKind.LOAN, "loan_id"))
):
    """Pay installments of a loan"""
    try:
        result = system.loan_service.pay_loan(loan_id, payment_amount)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return PaymentResultResponse.from_result(result)
