"""
Account services.

Business logic for creating and deactivating accounts. Creation performs a
single atomic write so an abandoned invocation never leaves a half-created
account behind.
"""

import logging
import uuid

from django.contrib.auth.base_user import BaseUserManager
from django.contrib.auth.hashers import make_password
from django.db import DatabaseError, IntegrityError, transaction

from apps.accounts.exceptions import DuplicateAccountError, StoreUnavailableError
from apps.accounts.models import Account

logger = logging.getLogger(__name__)


def generate_account_id() -> str:
    """Return a fresh random identifier (UUID4, 122 random bits)."""
    return str(uuid.uuid4())


def normalize_email(email: str) -> str:
    """Strip surrounding whitespace and lowercase the domain part."""
    return BaseUserManager.normalize_email(email.strip())


class AccountService:
    """
    Creates and deactivates accounts.

    Usage:
        service = AccountService()
        account, replayed = service.create_account(email, password, idempotency_key)
    """

    def create_account(
        self,
        email: str,
        password: str,
        idempotency_key: str | None = None,
    ) -> tuple[Account, bool]:
        """
        Create an account, or replay the one created earlier for the same key.

        Args:
            email: Validated email address.
            password: Validated raw password (stored hashed).
            idempotency_key: Optional key of the originating request. When an
                account with this key exists it is returned instead of creating
                a new one. A replayed account that was deactivated by
                compensation is reactivated.

        Returns:
            (account, replayed) tuple.

        Raises:
            DuplicateAccountError: The email is registered by another request, or
                the replayed account was deactivated outside the pipeline.
            StoreUnavailableError: The database could not be reached.
        """
        normalized_email = normalize_email(email)

        try:
            if idempotency_key:
                existing = self._find_by_key(idempotency_key)
                if existing is not None:
                    return self._replay(existing), True

            with transaction.atomic():
                account = Account.objects.create(
                    account_id=generate_account_id(),
                    email=normalized_email,
                    password=make_password(password),
                    idempotency_key=idempotency_key or None,
                )

        except IntegrityError as e:
            # Lost a race against the same request, or the email is taken.
            if idempotency_key:
                existing = self._find_by_key(idempotency_key)
                if existing is not None:
                    return self._replay(existing), True
            raise DuplicateAccountError(normalized_email) from e

        except DatabaseError as e:
            logger.warning(f"Account store unavailable: {e}")
            raise StoreUnavailableError(f"Account store unavailable: {e}") from e

        logger.info(
            f"Account created: {account.account_id}",
            extra={"account_id": account.account_id},
        )
        return account, False

    def deactivate_account(
        self, account_id: str, reason: str = "", compensated: bool = False
    ) -> Account | None:
        """
        Deactivate an account.

        compensated marks a deactivation made by the signup pipeline to undo
        its own creation; only those are reversed by a replay.

        Returns the account, or None when no such account exists.

        Raises:
            StoreUnavailableError: The database could not be reached.
        """
        try:
            account = Account.objects.filter(account_id=account_id).first()
            if account is None:
                return None
            if account.is_active:
                account.deactivate(reason=reason, compensated=compensated)
                logger.info(
                    f"Account deactivated: {account_id} ({reason})",
                    extra={"account_id": account_id},
                )
            return account
        except DatabaseError as e:
            raise StoreUnavailableError(f"Account store unavailable: {e}") from e

    def _find_by_key(self, idempotency_key: str) -> Account | None:
        return Account.objects.filter(idempotency_key=idempotency_key).first()

    def _replay(self, account: Account) -> Account:
        if not account.is_active:
            if not account.compensated:
                raise DuplicateAccountError(account.email)
            with transaction.atomic():
                account.reactivate()
            logger.info(
                f"Reactivated compensated account {account.account_id} on replay",
                extra={"account_id": account.account_id},
            )
            return account

        logger.info(
            f"Replaying account {account.account_id} for idempotency key",
            extra={"account_id": account.account_id},
        )
        return account
