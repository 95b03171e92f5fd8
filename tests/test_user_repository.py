"""Integration tests for UserRepository against in-memory SQLite."""

import unittest
from datetime import timedelta

from app.core.exceptions import EmailTakenError
from app.models import Role
from app.repositories import UserRepository
from tests.fakes import FakeClock, make_session_factory


class RepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.repo = UserRepository(self.db)
        self.clock = FakeClock()

    def tearDown(self) -> None:
        self.db.close()

    def _create(self, email: str = "a@example.com", **kwargs):
        return self.repo.create(
            email=email, password_hash="hash", full_name="Ada Lovelace", **kwargs
        )


class TestCreateAndLookup(RepositoryTestCase):
    def test_create_assigns_uid_and_defaults(self) -> None:
        user = self._create()
        self.assertIsNotNone(user.id)
        self.assertEqual(len(user.uid), 36)
        self.assertEqual(user.role, Role.REGULAR)
        self.assertFalse(user.email_verified)
        self.assertIsNone(user.refresh_token_hash)
        self.assertIsNotNone(user.created_at)

    def test_lookups_by_id_uid_and_email(self) -> None:
        user = self._create()
        self.assertEqual(self.repo.get_active_by_id(user.id).uid, user.uid)
        self.assertEqual(self.repo.get_active_by_uid(user.uid).id, user.id)
        self.assertEqual(self.repo.get_active_by_email("a@example.com").id, user.id)

    def test_duplicate_active_email_raises(self) -> None:
        self._create()
        with self.assertRaises(EmailTakenError):
            self._create()
        # session is still usable after the rollback
        self.assertEqual(self.repo.count_active(), 1)

    def test_email_reusable_after_soft_delete(self) -> None:
        first = self._create()
        self.assertTrue(self.repo.soft_delete(first.id, self.clock()))
        second = self._create()
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(self.repo.get_active_by_email("a@example.com").id, second.id)


class TestSoftDelete(RepositoryTestCase):
    def test_deleted_user_invisible_and_session_cleared(self) -> None:
        user = self._create()
        self.repo.set_refresh_token_hash(user.id, "h")
        user_id, uid = user.id, user.uid
        self.assertTrue(self.repo.soft_delete(user_id, self.clock()))
        self.assertIsNone(self.repo.get_active_by_id(user_id))
        self.assertIsNone(self.repo.get_active_by_uid(uid))
        self.assertIsNone(self.repo.get_active_by_email("a@example.com"))
        self.assertFalse(self.repo.soft_delete(user_id, self.clock()))

    def test_list_and_count_exclude_deleted(self) -> None:
        users = [self._create(f"u{i}@example.com") for i in range(3)]
        self.repo.soft_delete(users[0].id, self.clock())
        self.assertEqual(self.repo.count_active(), 2)
        listed = self.repo.list_active(offset=0, limit=10)
        self.assertEqual([u.email for u in listed], ["u2@example.com", "u1@example.com"])

    def test_list_paginates(self) -> None:
        for i in range(5):
            self._create(f"u{i}@example.com")
        page = self.repo.list_active(offset=2, limit=2)
        self.assertEqual([u.email for u in page], ["u2@example.com", "u1@example.com"])


class TestRefreshTokenRotation(RepositoryTestCase):
    def test_rotation_is_compare_and_swap(self) -> None:
        user = self._create()
        self.repo.set_refresh_token_hash(user.id, "old")
        self.assertTrue(self.repo.rotate_refresh_token_hash(user.id, "old", "new"))
        self.assertFalse(self.repo.rotate_refresh_token_hash(user.id, "old", "newer"))
        self.assertEqual(self.repo.get_active_by_id(user.id).refresh_token_hash, "new")

    def test_clear_refresh_token(self) -> None:
        user = self._create()
        self.repo.set_refresh_token_hash(user.id, "h")
        self.repo.set_refresh_token_hash(user.id, None)
        self.assertIsNone(self.repo.get_active_by_id(user.id).refresh_token_hash)


class TestFlowTokens(RepositoryTestCase):
    def test_verification_token_valid_until_expiry(self) -> None:
        user = self._create()
        expires = self.clock() + timedelta(hours=24)
        self.repo.set_verification_token(user.id, "tok", expires)
        self.assertIsNotNone(
            self.repo.find_by_verification_token("tok", expires - timedelta(microseconds=1))
        )
        self.assertIsNone(self.repo.find_by_verification_token("tok", expires))
        self.assertIsNone(self.repo.find_by_verification_token("other", self.clock()))

    def test_verification_consume_is_single_use(self) -> None:
        user = self._create()
        self.repo.set_verification_token(user.id, "tok", self.clock() + timedelta(hours=1))
        self.assertTrue(self.repo.consume_verification_token(user.id, "tok", self.clock()))
        self.assertFalse(self.repo.consume_verification_token(user.id, "tok", self.clock()))
        refreshed = self.repo.get_active_by_id(user.id)
        self.assertTrue(refreshed.email_verified)
        self.assertIsNone(refreshed.email_verification_token)
        self.assertIsNone(refreshed.email_verification_expires_at)

    def test_reset_consume_sets_password_and_ends_session(self) -> None:
        user = self._create()
        self.repo.set_refresh_token_hash(user.id, "h")
        self.repo.set_password_reset_token(user.id, "tok", self.clock() + timedelta(hours=1))
        self.assertTrue(
            self.repo.consume_password_reset_token(user.id, "tok", self.clock(), "newhash")
        )
        refreshed = self.repo.get_active_by_id(user.id)
        self.assertEqual(refreshed.password_hash, "newhash")
        self.assertIsNone(refreshed.refresh_token_hash)
        self.assertIsNone(refreshed.password_reset_token)
        self.assertFalse(
            self.repo.consume_password_reset_token(user.id, "tok", self.clock(), "again")
        )

    def test_expired_reset_token_not_consumed(self) -> None:
        user = self._create()
        expires = self.clock() + timedelta(hours=1)
        self.repo.set_password_reset_token(user.id, "tok", expires)
        self.assertFalse(self.repo.consume_password_reset_token(user.id, "tok", expires, "x"))
        self.assertEqual(self.repo.get_active_by_id(user.id).password_hash, "hash")


if __name__ == "__main__":
    unittest.main()
