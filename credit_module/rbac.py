"""
Authorization Module

Access decisions for the transport layer. An actor is allowed to act on a
customer or loan when they are an admin or when the ownership queries of the
loan service say the resource is theirs. The loan core itself performs no
access checks.
"""

from enum import Enum
from typing import Optional

from .loans import LoanService
from .logging_config import get_logger, log_action
from .users import UserStore


class ResourceKind(Enum):
    """Kinds of resources guarded by the policy"""
    CUSTOMER = "customer"
    LOAN = "loan"


class Decision(Enum):
    """Authorization outcome"""
    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW


class AccessPolicy:
    """Capability check: (actor, resource kind, resource id) -> allow | deny"""

    def __init__(self, user_store: UserStore, loan_service: LoanService):
        self.user_store = user_store
        self.loan_service = loan_service
        self.logger = get_logger("credit_module.rbac")

    def authorize(self, actor: Optional[str], kind: ResourceKind, resource_id: str) -> Decision:
        decision = self._decide(actor, kind, resource_id)
        if not decision.allowed:
            log_action(
                self.logger, "warning", "Access denied",
                user_id=actor, action="authorize", resource=f"{kind.value}:{resource_id}"
            )
        return decision

    def _decide(self, actor: Optional[str], kind: ResourceKind, resource_id: str) -> Decision:
        if not actor:
            return Decision.DENY

        user = self.user_store.find_by_username(actor)
        if user is None:
            return Decision.DENY
        if user.is_admin:
            return Decision.ALLOW

        if kind == ResourceKind.CUSTOMER:
            owned = self.loan_service.is_customer_owner(actor, resource_id)
        elif kind == ResourceKind.LOAN:
            owned = self.loan_service.is_loan_owner(actor, resource_id)
        else:
            owned = False

        return Decision.ALLOW if owned else Decision.DENY
