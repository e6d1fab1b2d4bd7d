"""Tests for the role hierarchy and user administration rules in app.services.users."""

import unittest

from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.roles import Role, has_at_least, role_level
from app.models import User
from app.schemas.auth import AuthContext
from app.schemas.users import UserCreate, UserListQuery, UserUpdate
from app.services import users as user_service
from app.services.auth import login
from app.services.session_store import set_session
from tests.factories import create_order_row, create_product, create_user, ctx_for, make_session


def _actor(role: Role, user_id: int = 100) -> AuthContext:
    return AuthContext(id=user_id, email=f"{role.value}@example.com", role=role)


def _target(role: Role, user_id: int = 200) -> User:
    return User(id=user_id, email="target@example.com", name="Target", role=role.value)


class TestRoleHierarchy(unittest.TestCase):
    def test_levels_are_ordered(self) -> None:
        self.assertLess(role_level(Role.USER), role_level(Role.MOD))
        self.assertLess(role_level(Role.MOD), role_level(Role.ADMIN))
        self.assertLess(role_level(Role.ADMIN), role_level(Role.SUPER_ADMIN))

    def test_has_at_least(self) -> None:
        self.assertTrue(has_at_least(Role.ADMIN, Role.MOD))
        self.assertTrue(has_at_least("admin", "admin"))
        self.assertFalse(has_at_least(Role.MOD, Role.ADMIN))

    def test_unknown_role_ranks_below_everything(self) -> None:
        self.assertEqual(role_level("owner"), 0)
        self.assertFalse(has_at_least("owner", Role.USER))


class TestAuthorizeCreate(unittest.TestCase):
    def test_nobody_creates_super_admin(self) -> None:
        with self.assertRaises(ForbiddenError):
            user_service.authorize_create(_actor(Role.SUPER_ADMIN), Role.SUPER_ADMIN)

    def test_only_super_admin_creates_admin(self) -> None:
        user_service.authorize_create(_actor(Role.SUPER_ADMIN), Role.ADMIN)
        with self.assertRaises(ForbiddenError):
            user_service.authorize_create(_actor(Role.ADMIN), Role.ADMIN)

    def test_admin_creates_mod_but_mod_does_not(self) -> None:
        user_service.authorize_create(_actor(Role.ADMIN), Role.MOD)
        with self.assertRaises(ForbiddenError):
            user_service.authorize_create(_actor(Role.MOD), Role.MOD)

    def test_mod_creates_user_but_user_does_not(self) -> None:
        user_service.authorize_create(_actor(Role.MOD), Role.USER)
        with self.assertRaises(ForbiddenError):
            user_service.authorize_create(_actor(Role.USER), Role.USER)


class TestAuthorizeUpdate(unittest.TestCase):
    def test_user_updates_only_itself(self) -> None:
        actor = _actor(Role.USER, user_id=5)
        user_service.authorize_update(actor, _target(Role.USER, user_id=5), UserUpdate(name="New"))
        with self.assertRaises(ForbiddenError):
            user_service.authorize_update(actor, _target(Role.USER), UserUpdate(name="New"))

    def test_user_cannot_change_own_role(self) -> None:
        actor = _actor(Role.USER, user_id=5)
        with self.assertRaises(ForbiddenError):
            user_service.authorize_update(
                actor, _target(Role.USER, user_id=5), UserUpdate(role=Role.ADMIN)
            )

    def test_mod_cannot_touch_roles_or_staff(self) -> None:
        actor = _actor(Role.MOD)
        with self.assertRaises(ForbiddenError):
            user_service.authorize_update(actor, _target(Role.USER), UserUpdate(role=Role.MOD))
        with self.assertRaises(ForbiddenError):
            user_service.authorize_update(actor, _target(Role.MOD), UserUpdate(name="x"))

    def test_mod_cannot_set_admin_role(self) -> None:
        with self.assertRaises(ForbiddenError):
            user_service.authorize_update(
                _actor(Role.MOD), _target(Role.USER), UserUpdate(role=Role.ADMIN)
            )

    def test_admin_cannot_promote_to_admin(self) -> None:
        with self.assertRaises(ForbiddenError):
            user_service.authorize_update(
                _actor(Role.ADMIN), _target(Role.USER), UserUpdate(role=Role.ADMIN)
            )

    def test_admin_cannot_update_other_admin(self) -> None:
        with self.assertRaises(ForbiddenError):
            user_service.authorize_update(
                _actor(Role.ADMIN), _target(Role.ADMIN), UserUpdate(name="x")
            )

    def test_admin_may_demote_mod(self) -> None:
        user_service.authorize_update(_actor(Role.ADMIN), _target(Role.MOD), UserUpdate(role=Role.USER))

    def test_super_admin_cannot_make_another_super_admin(self) -> None:
        with self.assertRaises(ForbiddenError):
            user_service.authorize_update(
                _actor(Role.SUPER_ADMIN), _target(Role.ADMIN), UserUpdate(role=Role.SUPER_ADMIN)
            )
        user_service.authorize_update(
            _actor(Role.SUPER_ADMIN), _target(Role.USER), UserUpdate(role=Role.ADMIN)
        )


class TestAuthorizeDelete(unittest.TestCase):
    def test_super_admin_never_deleted(self) -> None:
        with self.assertRaises(ForbiddenError):
            user_service.authorize_delete(_actor(Role.SUPER_ADMIN), _target(Role.SUPER_ADMIN))

    def test_admin_cannot_delete_admin(self) -> None:
        with self.assertRaises(ForbiddenError):
            user_service.authorize_delete(_actor(Role.ADMIN), _target(Role.ADMIN))
        user_service.authorize_delete(_actor(Role.ADMIN), _target(Role.MOD))

    def test_below_admin_only_self(self) -> None:
        user_service.authorize_delete(_actor(Role.MOD, user_id=9), _target(Role.MOD, user_id=9))
        with self.assertRaises(ForbiddenError):
            user_service.authorize_delete(_actor(Role.MOD), _target(Role.USER))


class TestVisibleRoles(unittest.TestCase):
    def test_visibility_by_role(self) -> None:
        self.assertEqual(user_service.visible_roles(Role.MOD), {Role.USER})
        self.assertEqual(user_service.visible_roles(Role.ADMIN), {Role.MOD, Role.USER})
        self.assertEqual(user_service.visible_roles(Role.SUPER_ADMIN), set(Role))
        self.assertEqual(user_service.visible_roles(Role.USER), set())


class TestUserOperations(unittest.TestCase):
    """Operations against a real (in-memory) database."""

    def setUp(self) -> None:
        self.db = make_session()
        self.root = create_user(self.db, "root@example.com", Role.SUPER_ADMIN)
        self.admin = create_user(self.db, "admin@example.com", Role.ADMIN)
        self.mod = create_user(self.db, "mod@example.com", Role.MOD)
        self.user = create_user(self.db, "alice@example.com", Role.USER, name="Alice")

    def tearDown(self) -> None:
        self.db.close()

    def test_create_user_normalizes_email_and_rejects_duplicates(self) -> None:
        created = user_service.create_user(
            self.db,
            ctx_for(self.mod),
            UserCreate(email="Bob@Example.com", password="password123", name="Bob"),
        )
        self.assertEqual(created.email, "bob@example.com")
        self.assertEqual(created.role, Role.USER)
        with self.assertRaises(ConflictError):
            user_service.create_user(
                self.db,
                ctx_for(self.mod),
                UserCreate(email="bob@example.com", password="password123", name="Bob 2"),
            )

    def test_list_users_respects_visibility(self) -> None:
        page = user_service.list_users(self.db, ctx_for(self.mod), UserListQuery())
        self.assertEqual({u.email for u in page.items}, {"alice@example.com"})

        page = user_service.list_users(self.db, ctx_for(self.admin), UserListQuery())
        self.assertEqual({u.email for u in page.items}, {"alice@example.com", "mod@example.com"})

        page = user_service.list_users(self.db, ctx_for(self.root), UserListQuery())
        self.assertEqual(page.total, 4)

    def test_list_users_hidden_role_filter_is_empty(self) -> None:
        page = user_service.list_users(self.db, ctx_for(self.mod), UserListQuery(role=Role.ADMIN))
        self.assertEqual(page.total, 0)
        self.assertEqual(page.items, [])

    def test_list_users_search_and_paging(self) -> None:
        page = user_service.list_users(
            self.db, ctx_for(self.root), UserListQuery(search="ali", limit=1)
        )
        self.assertEqual(page.total, 1)
        self.assertEqual(page.items[0].name, "Alice")
        self.assertEqual(page.total_pages, 1)

    def test_get_user_missing_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            user_service.get_user(self.db, ctx_for(self.root), 9999)

    def test_mod_cannot_view_admin(self) -> None:
        with self.assertRaises(ForbiddenError):
            user_service.get_user(self.db, ctx_for(self.mod), self.admin.id)

    def test_role_change_ends_session(self) -> None:
        login(self.db, "alice@example.com", "correct-horse-battery")
        self.db.refresh(self.user)
        self.assertIsNotNone(self.user.refresh_token_hash)

        updated = user_service.update_user(
            self.db, ctx_for(self.root), self.user.id, UserUpdate(role=Role.MOD)
        )
        self.assertEqual(updated.role, Role.MOD)
        self.db.refresh(self.user)
        self.assertIsNone(self.user.refresh_token_hash)

    def test_profile_edit_keeps_session(self) -> None:
        set_session(self.db, self.user.id, "some-refresh-token")
        self.db.commit()
        user_service.update_user(
            self.db, ctx_for(self.user), self.user.id, UserUpdate(name="Alice B")
        )
        self.db.refresh(self.user)
        self.assertEqual(self.user.name, "Alice B")
        self.assertIsNotNone(self.user.refresh_token_hash)

    def test_update_email_conflict(self) -> None:
        with self.assertRaises(ConflictError):
            user_service.update_user(
                self.db, ctx_for(self.user), self.user.id, UserUpdate(email="mod@example.com")
            )

    def test_delete_user(self) -> None:
        deleted = user_service.delete_user(self.db, ctx_for(self.admin), self.user.id)
        self.assertEqual(deleted.email, "alice@example.com")
        self.assertIsNone(self.db.get(User, self.user.id))

    def test_user_with_orders_cannot_be_deleted(self) -> None:
        product = create_product(self.db)
        create_order_row(self.db, self.user, [(product, 1)])
        with self.assertRaises(ConflictError):
            user_service.delete_user(self.db, ctx_for(self.admin), self.user.id)
