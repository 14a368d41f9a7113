"""Tests for AccountService."""

from unittest.mock import patch

from django.contrib.auth.hashers import check_password
from django.db import OperationalError
from django.test import TestCase

from apps.accounts.exceptions import DuplicateAccountError, StoreUnavailableError
from apps.accounts.models import Account
from apps.accounts.services import AccountService, generate_account_id, normalize_email


class GenerateAccountIdTests(TestCase):
    def test_ids_are_unique(self):
        ids = {generate_account_id() for _ in range(100)}
        self.assertEqual(len(ids), 100)


class NormalizeEmailTests(TestCase):
    def test_lowercases_domain_only(self):
        self.assertEqual(normalize_email("  Alice@Example.COM "), "Alice@example.com")


class CreateAccountTests(TestCase):
    def test_create_account(self):
        account, replayed = AccountService().create_account("a@b.com", "secret1")

        self.assertFalse(replayed)
        self.assertTrue(account.account_id)
        self.assertEqual(account.email, "a@b.com")
        self.assertTrue(account.is_active)
        self.assertNotEqual(account.password, "secret1")
        self.assertTrue(check_password("secret1", account.password))

    def test_domain_is_normalized(self):
        account, _ = AccountService().create_account("  User@EXAMPLE.com ", "secret1")
        self.assertEqual(account.email, "User@example.com")

    def test_same_request_twice_in_isolation_gives_different_ids(self):
        service = AccountService()
        first, _ = service.create_account("a@b.com", "secret1")
        Account.objects.all().delete()
        second, _ = service.create_account("a@b.com", "secret1")
        self.assertNotEqual(first.account_id, second.account_id)

    def test_duplicate_email(self):
        service = AccountService()
        service.create_account("a@b.com", "secret1")

        with self.assertRaises(DuplicateAccountError) as ctx:
            service.create_account("a@b.com", "other-password")

        self.assertEqual(ctx.exception.error_kind, "DuplicateAccount")
        self.assertFalse(ctx.exception.retryable)
        self.assertEqual(Account.objects.count(), 1)

    def test_replay_with_idempotency_key(self):
        service = AccountService()
        first, first_replayed = service.create_account("a@b.com", "secret1", idempotency_key="k1")
        second, second_replayed = service.create_account("a@b.com", "secret1", idempotency_key="k1")

        self.assertFalse(first_replayed)
        self.assertTrue(second_replayed)
        self.assertEqual(first.account_id, second.account_id)
        self.assertEqual(Account.objects.count(), 1)

    def test_different_key_same_email_is_duplicate(self):
        service = AccountService()
        service.create_account("a@b.com", "secret1", idempotency_key="k1")
        with self.assertRaises(DuplicateAccountError):
            service.create_account("a@b.com", "secret2", idempotency_key="k2")

    def test_lost_race_replays_by_key(self):
        service = AccountService()
        existing, _ = service.create_account("a@b.com", "secret1", idempotency_key="k1")

        # The pre-check misses the row, the insert then hits the unique constraint.
        with patch.object(AccountService, "_find_by_key", side_effect=[None, existing]):
            account, replayed = service.create_account("a@b.com", "secret1", idempotency_key="k1")

        self.assertTrue(replayed)
        self.assertEqual(account.account_id, existing.account_id)

    def test_store_unavailable(self):
        with patch(
            "apps.accounts.services.Account.objects.create",
            side_effect=OperationalError("database is locked"),
        ):
            with self.assertRaises(StoreUnavailableError) as ctx:
                AccountService().create_account("a@b.com", "secret1")

        self.assertEqual(ctx.exception.error_kind, "StoreUnavailable")
        self.assertTrue(ctx.exception.retryable)


class DeactivateAccountTests(TestCase):
    def test_deactivate(self):
        service = AccountService()
        account, _ = service.create_account("a@b.com", "secret1")

        result = service.deactivate_account(account.account_id, reason="notification failed")

        account.refresh_from_db()
        self.assertEqual(result.pk, account.pk)
        self.assertFalse(account.is_active)
        self.assertIsNotNone(account.deactivated_at)
        self.assertEqual(account.deactivation_reason, "notification failed")

    def test_deactivate_unknown_account(self):
        self.assertIsNone(AccountService().deactivate_account("missing"))

    def test_deactivate_is_repeatable(self):
        service = AccountService()
        account, _ = service.create_account("a@b.com", "secret1")
        service.deactivate_account(account.account_id, reason="first")
        service.deactivate_account(account.account_id, reason="second")

        account.refresh_from_db()
        self.assertEqual(account.deactivation_reason, "first")

    def test_deactivate_store_unavailable(self):
        with patch(
            "apps.accounts.services.Account.objects.filter",
            side_effect=OperationalError("down"),
        ):
            with self.assertRaises(StoreUnavailableError):
                AccountService().deactivate_account("acc-1")


class ReplayDeactivatedAccountTests(TestCase):
    def test_replay_reactivates_compensated_account(self):
        service = AccountService()
        account, _ = service.create_account("a@b.com", "secret1", idempotency_key="k1")
        service.deactivate_account(account.account_id, reason="send failed", compensated=True)

        replayed, was_replay = service.create_account("a@b.com", "secret1", idempotency_key="k1")

        self.assertTrue(was_replay)
        self.assertEqual(replayed.account_id, account.account_id)
        account.refresh_from_db()
        self.assertTrue(account.is_active)
        self.assertFalse(account.compensated)
        self.assertEqual(account.deactivation_reason, "")

    def test_replay_refuses_account_deactivated_by_admin(self):
        service = AccountService()
        account, _ = service.create_account("a@b.com", "secret1", idempotency_key="k1")
        service.deactivate_account(account.account_id, reason="Deactivated via admin")

        with self.assertRaises(DuplicateAccountError):
            service.create_account("a@b.com", "secret1", idempotency_key="k1")

        account.refresh_from_db()
        self.assertFalse(account.is_active)
