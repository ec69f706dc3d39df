"""
Customer management endpoints
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, status

from .auth import CreditSystem, get_credit_system, require_access, require_admin
from .schemas import CreateCustomerRequest, CustomerResponse
from ..exceptions import InvalidArgumentError, NotFoundError
from ..rbac import ResourceKind


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CustomerResponse)
async def create_customer(
    request: CreateCustomerRequest,
    system: CreditSystem = Depends(get_credit_system),
    current_user: Optional[str] = Depends(require_admin)
):
    """Create a new customer with a credit line"""
    try:
        customer = system.customer_store.create_customer(
            name=request.name,
            surname=request.surname,
            credit_limit=request.credit_limit
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return CustomerResponse.from_customer(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    system: CreditSystem = Depends(get_credit_system),
    current_user: Optional[str] = Depends(require_access(ResourceKind.CUSTOMER, "customer_id"))
):
    """Get customer by ID"""
    try:
        customer = system.customer_store.get(customer_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return CustomerResponse.from_customer(customer)
