"""Identity resolution and cache coherence after mutations."""

import unittest

from app.core.exceptions import SessionExpiredError, UserNotFoundError
from app.core.security import TokenClaims
from app.models import Role
from tests.fakes import ServiceBundle, make_session_factory


class TestIdentityResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.s = ServiceBundle(self.db)
        result = self.s.auth.signup("a@x.com", "Passw0rd!", "A")
        self.claims = self.s.tokens.verify(result.access_token, "access")
        self.admin = self._make_admin()

    def tearDown(self) -> None:
        self.db.close()

    def _make_admin(self):
        user = self.s.repo.create(
            email="root@x.com", password_hash="x", full_name="Root", role=Role.SUPERADMIN
        )
        self.s.repo.set_refresh_token_hash(user.id, "h")
        claims = TokenClaims(subject_id=user.id, uid=user.uid, email=user.email)
        return self.s.identity.resolve(claims)

    def test_miss_loads_from_store_and_populates_cache(self) -> None:
        current = self.s.identity.resolve(self.claims)
        self.assertEqual(current.email, "a@x.com")
        self.assertEqual(current.role, Role.REGULAR)
        self.assertIn(f"user:{self.claims.subject_id}", self.s.redis.store)

    def test_hit_is_served_from_cache(self) -> None:
        self.s.identity.resolve(self.claims)
        # a write that bypasses invalidation stays invisible until the entry expires
        self.s.repo.soft_delete(self.claims.subject_id, self.s.clock())
        current = self.s.identity.resolve(self.claims)
        self.assertEqual(current.uid, self.claims.uid)

    def test_unknown_subject_is_user_not_found(self) -> None:
        with self.assertRaises(UserNotFoundError):
            self.s.identity.resolve(TokenClaims(subject_id=999, uid="x", email="x@x.com"))

    def test_redis_outage_falls_back_to_store(self) -> None:
        self.s.redis.fail_reads = True
        self.s.redis.fail_writes = True
        self.assertEqual(self.s.identity.resolve(self.claims).email, "a@x.com")

    def test_role_change_visible_after_warm_cache(self) -> None:
        self.s.identity.resolve(self.claims)
        self.s.users.admin_update(self.claims.uid, self.admin, role=Role.ADMIN)
        self.assertEqual(self.s.identity.resolve(self.claims).role, Role.ADMIN)

    def test_delete_visible_after_warm_cache(self) -> None:
        self.s.identity.resolve(self.claims)
        self.s.users.delete(self.claims.uid, self.admin)
        with self.assertRaises(UserNotFoundError):
            self.s.identity.resolve(self.claims)

    def test_password_reset_visible_after_warm_cache(self) -> None:
        self.s.identity.resolve(self.claims)
        self.s.auth.forgot_password("a@x.com")
        self.s.auth.reset_password(self.s.last_reset_token(), "N3wPassword!")
        with self.assertRaises(SessionExpiredError):
            self.s.identity.resolve(self.claims)

    def test_profile_change_visible_after_warm_cache(self) -> None:
        self.s.identity.resolve(self.claims)
        self.s.users.update_profile(self.claims.uid, full_name="Ada")
        self.assertEqual(self.s.identity.resolve(self.claims).full_name, "Ada")

    def test_password_change_invalidates_entry(self) -> None:
        self.s.identity.resolve(self.claims)
        self.s.users.change_password(self.claims.uid, "Passw0rd!", "N3wPassword!")
        self.assertNotIn(f"user:{self.claims.subject_id}", self.s.redis.store)


if __name__ == "__main__":
    unittest.main()
