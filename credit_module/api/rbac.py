"""
Authentication and user administration endpoints
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, status

from .auth import CreditSystem, get_credit_system, logger, require_admin
from .schemas import CreateUserRequest, LoginRequest, TokenResponse, UserResponse
from ..exceptions import AuthenticationError, InvalidArgumentError, NotFoundError
from ..logging_config import log_action
from ..users import UserRole


router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    system: CreditSystem = Depends(get_credit_system)
):
    """Authenticate user and return JWT token"""
    try:
        user = system.user_store.authenticate(request.username, request.password)
    except AuthenticationError as e:
        log_action(
            logger, "warning", "Authentication failed",
            action="login_failed", resource="auth",
            extra={"username": request.username}
        )
        raise HTTPException(status_code=401, detail=str(e))

    log_action(
        logger, "info", "User authenticated successfully",
        user_id=user.username, action="login", resource="auth"
    )
    return TokenResponse(access_token=system.issue_token(user))


@router.post("/users", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def create_user(
    request: CreateUserRequest,
    system: CreditSystem = Depends(get_credit_system),
    current_user: Optional[str] = Depends(require_admin)
):
    """Create a user; customer users act for an existing customer"""
    try:
        if request.role == UserRole.CUSTOMER and request.customer_id:
            system.customer_store.get(request.customer_id)
        user = system.user_store.create_user(
            request.username, request.password, request.role, request.customer_id
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return UserResponse.from_user(user)
