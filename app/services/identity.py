"""Account registration, password login and actor resolution."""
import logging
from typing import List, Optional

import bcrypt

from app.models.domain import Account, new_id
from app.models.enums import Role
from app.repositories.base import AccountStore, coerce_enum, stamp
from app.services.errors import NotFoundError, PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


# Password hashing (direct bcrypt)
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def _check_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class AccountDirectory:
    """The identity store: owns accounts, resolves credentials to an account."""

    def __init__(self, accounts: AccountStore):
        self.accounts = accounts

    def register(
        self,
        email: str,
        password: str,
        name: str,
        department: Optional[str] = None,
        role: Role = Role.REPORTER,
        phone: Optional[str] = None,
        allow_admin: bool = False
    ) -> Account:
        """
        Create an account.

        Invariants:
        - email is unique, case-insensitively
        - self-service signup cannot create an admin (allow_admin is for seeding)
        """
        email = (email or "").strip().lower()
        name = (name or "").strip()
        role = coerce_enum(Role, role, "role")

        if not email or "@" not in email:
            raise ValidationError("A valid email address is required")
        if not name:
            raise ValidationError("Name is required")
        _check_password(password)
        if role == Role.ADMIN and not allow_admin:
            raise PermissionDeniedError("Admin accounts cannot be self-registered")
        if self.accounts.find_by_email(email) is not None:
            raise ValidationError("An account with this email already exists")

        account = Account(
            id=new_id("user"),
            email=email,
            name=name,
            department=department,
            phone=phone,
            role=role,
            password_hash=hash_password(password),
            created_at=stamp()
        )
        self.accounts.add(account)
        logger.info("Registered %s account %s", role.value, account.id)
        return account

    def authenticate(self, email: str, password: str) -> Optional[Account]:
        """Return the account for valid credentials, else None."""
        account = self.accounts.find_by_email(email or "")
        if account is None or not verify_password(password or "", account.password_hash):
            logger.warning("Failed login attempt for %s", email)
            return None
        return account

    def get(self, account_id: str) -> Account:
        account = self.accounts.find(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    def update_profile(
        self,
        actor: Account,
        name: Optional[str] = None,
        department: Optional[str] = None,
        phone: Optional[str] = None
    ) -> Account:
        """Edit the caller's own name, department and phone. Email and role are fixed."""
        account = self.get(actor.id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Name is required")
            account.name = name
        if department is not None:
            account.department = department.strip() or None
        if phone is not None:
            account.phone = phone.strip() or None

        self.accounts.save(account)
        logger.info("Profile updated for account %s", account.id)
        return account

    def change_password(self, actor: Account, new_password: str, confirm_password: Optional[str] = None) -> None:
        if confirm_password is not None and new_password != confirm_password:
            raise ValidationError("Passwords do not match")
        _check_password(new_password)

        account = self.get(actor.id)
        account.password_hash = hash_password(new_password)
        self.accounts.save(account)
        logger.info("Password changed for account %s", account.id)

    def list_staff(self) -> List[Account]:
        """Accounts that issues can be assigned to."""
        return [a for a in self.accounts.list_all() if a.is_staff]

    def resolve_current_actor(self, account_id: Optional[str]) -> Optional[Account]:
        """Map the session's account id to an Account; unknown or missing ids give None."""
        if not account_id:
            return None
        return self.accounts.find(account_id)
