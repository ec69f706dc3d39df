"""
User Module

Application users, their role and, for customer users, the customer record
they act for. Passwords are stored as salted scrypt hashes.
"""

import hashlib
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import AuthenticationError, InvalidArgumentError
from .logging_config import get_logger, log_action
from .storage import StorageInterface, StorageRecord


class UserRole(Enum):
    """User roles"""
    ADMIN = "ADMIN"          # Operates on any customer or loan
    CUSTOMER = "CUSTOMER"    # Operates on own customer record and loans only


@dataclass
class User(StorageRecord):
    """Application user"""
    username: str
    role: UserRole
    customer_id: Optional[str] = None  # required for CUSTOMER, absent for ADMIN
    password_hash: Optional[str] = None
    password_salt: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        data = cls._parse_timestamps(data)
        data['role'] = UserRole(data['role'])
        return cls(**data)


class UserStore:
    """User persistence and password verification"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "users"
        self.logger = get_logger("credit_module.users")

    def create_user(self, username: str, password: str, role: UserRole,
                    customer_id: Optional[str] = None) -> User:
        """Create a new user"""
        if role == UserRole.CUSTOMER and not customer_id:
            raise InvalidArgumentError("Customer users must reference a customer")
        if role == UserRole.ADMIN and customer_id:
            raise InvalidArgumentError("Admin users cannot reference a customer")
        if self.find_by_username(username):
            raise InvalidArgumentError(f"Username {username} already exists")

        now = datetime.now(timezone.utc)
        user = User(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            username=username,
            role=role,
            customer_id=customer_id,
        )
        self._set_user_password(user, password)
        self.storage.save(self.table_name, user.id, user.to_dict())

        log_action(
            self.logger, "info", "User created",
            user_id=username, action="create_user", resource=f"user:{user.id}",
            extra={"role": role.value}
        )
        return user

    def find_by_username(self, username: str) -> Optional[User]:
        """Get user by username"""
        users = self.storage.find(self.table_name, {'username': username})
        if not users:
            return None
        return User.from_dict(users[0])

    def list_users(self) -> List[User]:
        return [User.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def authenticate(self, username: str, password: str) -> User:
        """Verify credentials and return the user"""
        user = self.find_by_username(username)
        if not user or not self._verify_password(user, password):
            raise AuthenticationError("Invalid username or password")
        return user

    def _generate_salt(self) -> str:
        """Generate random salt for password hashing"""
        return secrets.token_hex(16)

    def _hash_password(self, password: str, salt: str) -> str:
        """Hash password with salt using scrypt"""
        return hashlib.scrypt(
            password.encode(),
            salt=salt.encode(),
            n=16384, r=8, p=1
        ).hex()

    def _set_user_password(self, user: User, password: str):
        if not user.password_salt:
            user.password_salt = self._generate_salt()
        user.password_hash = self._hash_password(password, user.password_salt)

    def _verify_password(self, user: User, password: str) -> bool:
        if not user.password_hash or not user.password_salt:
            return False
        expected = self._hash_password(password, user.password_salt)
        return secrets.compare_digest(user.password_hash, expected)
