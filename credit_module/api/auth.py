"""
Authentication and authorization dependencies
"""

from datetime import datetime, timezone, timedelta
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from ..config import CreditModuleConfig, get_config
from ..customers import CustomerStore
from ..loans import InstallmentStore, LoanService, LoanStore
from ..logging_config import get_logger, log_action
from ..rbac import AccessPolicy, ResourceKind
from ..storage import create_storage
from ..users import User, UserRole, UserStore


logger = get_logger("credit_module.api")

# JWT Security
security = HTTPBearer(auto_error=False)


class CreditSystem:
    """Credit module with all components initialized"""

    def __init__(self, config: Optional[CreditModuleConfig] = None):
        self.config = config or get_config()
        self.storage = create_storage(self.config.database_url)

        self.customer_store = CustomerStore(self.storage)
        self.loan_store = LoanStore(self.storage)
        self.installment_store = InstallmentStore(self.storage)
        self.user_store = UserStore(self.storage)
        self.loan_service = LoanService(
            self.storage, self.customer_store, self.loan_store,
            self.installment_store, self.user_store, self.config
        )
        self.access_policy = AccessPolicy(self.user_store, self.loan_service)

        self._bootstrap_admin()

    def _bootstrap_admin(self) -> None:
        username = self.config.bootstrap_admin_username
        if not username or self.user_store.find_by_username(username):
            return
        self.user_store.create_user(username, self.config.bootstrap_admin_password, UserRole.ADMIN)

    def issue_token(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user.username,
            "role": user.role.value,
            "iat": now,
            "exp": now + timedelta(hours=self.config.jwt_expiry_hours),
        }
        return jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)


# Global credit system instance, created on first use
credit_system: Optional[CreditSystem] = None


# Dependency to get credit system
def get_credit_system() -> CreditSystem:
    global credit_system
    if credit_system is None:
        credit_system = CreditSystem()
    return credit_system


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    system: CreditSystem = Depends(get_credit_system)
) -> Optional[str]:
    """Dependency that validates the bearer JWT and returns the username"""
    if not system.config.auth_enabled:
        return None

    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = jwt.decode(
            credentials.credentials,
            system.config.jwt_secret,
            algorithms=[system.config.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    username = payload.get("sub")
    if not username:
        raise HTTPException(status_code=401, detail="Invalid token")
    return username


def require_access(kind: ResourceKind, param: str) -> Callable:
    """Dependency factory: the caller must be allowed to act on the resource named by ``param``"""
    def check(
        request: Request,
        username: Optional[str] = Depends(get_current_user),
        system: CreditSystem = Depends(get_credit_system)
    ) -> Optional[str]:
        if not system.config.auth_enabled:
            return username  # Skip access checks when auth is disabled

        resource_id = request.path_params.get(param) or request.query_params.get(param)
        if not resource_id:
            raise HTTPException(status_code=422, detail=f"Missing {param}")

        if not system.access_policy.authorize(username, kind, resource_id).allowed:
            raise HTTPException(status_code=403, detail="Access denied")
        return username
    return check


def require_admin(
    username: Optional[str] = Depends(get_current_user),
    system: CreditSystem = Depends(get_credit_system)
) -> Optional[str]:
    """Dependency: the caller must be an admin"""
    if not system.config.auth_enabled:
        return username

    user = system.user_store.find_by_username(username)
    if user is None or not user.is_admin:
        log_action(logger, "warning", "Admin access denied", user_id=username, action="require_admin")
        raise HTTPException(status_code=403, detail="Access denied")
    return username
