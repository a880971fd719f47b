from helpers import TempDbTestCase

from jamstore.db.auth import SESSION_KEY, AuthProvider
from jamstore.db.errors import AuthError


class AuthTestCase(TempDbTestCase):
    def setUp(self):
        super().setUp()
        self.store = self.make_store()
        self.provider = AuthProvider(self.store)
        self.events = []
        self.provider.on_identity_change(lambda ev, user: self.events.append((ev, user)))

    async def test_sign_up_forces_shopper_role(self):
        user = await self.provider.sign_up(
            "Mami@Example.com", "secret1", {"name": "Mami", "role": "admin"}
        )
        self.assertEqual(user.email, "mami@example.com")
        self.assertEqual(user.metadata["role"], "shopper")
        self.assertEqual(user.metadata["name"], "Mami")
        self.assertEqual(self.provider.current_user, user)
        self.assertEqual(self.store.get(SESSION_KEY), user.id)
        self.assertEqual(self.events, [("SIGNED_IN", user)])

    async def test_duplicate_email_rejected(self):
        await self.provider.sign_up("a@example.com", "secret1")
        self.assertFalse(await self.provider.email_available("A@example.com".lower()))
        with self.assertRaises(AuthError):
            await self.provider.sign_up("a@example.com", "other12")

    async def test_sign_in_and_out(self):
        await self.provider.sign_up("a@example.com", "secret1")
        await self.provider.sign_out()
        self.assertIsNone(self.provider.current_user)
        self.assertIsNone(self.store.get(SESSION_KEY))

        with self.assertRaises(AuthError):
            await self.provider.sign_in("a@example.com", "wrong")
        with self.assertRaises(AuthError):
            await self.provider.sign_in("nobody@example.com", "secret1")

        user = await self.provider.sign_in(" A@example.com ", "secret1")
        self.assertEqual(user.email, "a@example.com")
        self.assertEqual(
            [ev for ev, _ in self.events], ["SIGNED_IN", "SIGNED_OUT", "SIGNED_IN"]
        )

    async def test_restore_session(self):
        user = await self.provider.sign_up("a@example.com", "secret1")

        fresh = AuthProvider(self.make_store())
        restored = await fresh.restore_session()
        self.assertEqual(restored.id, user.id)
        self.assertEqual(fresh.current_user.id, user.id)

    async def test_restore_drops_dangling_session(self):
        self.store.set(SESSION_KEY, "ghost")
        self.assertIsNone(await self.provider.restore_session())
        self.assertIsNone(self.store.get(SESSION_KEY))

    async def test_ensure_admin_is_idempotent_and_silent(self):
        admin = await self.provider.ensure_admin("boss@jam.local", "admin123")
        again = await self.provider.ensure_admin("boss@jam.local", "other")
        self.assertEqual(admin.id, again.id)
        self.assertEqual(admin.metadata["role"], "admin")
        self.assertIsNone(self.provider.current_user)
        self.assertEqual(self.events, [])

        user = await self.provider.sign_in("boss@jam.local", "admin123")
        self.assertEqual(user.metadata["role"], "admin")

    async def test_update_metadata_cannot_change_role(self):
        with self.assertRaises(AuthError):
            await self.provider.update_user_metadata({"name": "x"})

        await self.provider.sign_up("a@example.com", "secret1", {"name": "A"})
        user = await self.provider.update_user_metadata({"name": "B", "role": "admin"})
        self.assertEqual(user.metadata["name"], "B")
        self.assertEqual(user.metadata["role"], "shopper")
        self.assertEqual(self.events[-1][0], "USER_UPDATED")

        fetched = await self.provider.get_current_user()
        self.assertEqual(fetched.metadata["name"], "B")

    async def test_listener_errors_do_not_propagate(self):
        def boom(_ev, _user):
            raise RuntimeError("listener bug")

        unsubscribe = self.provider.on_identity_change(boom)
        await self.provider.sign_up("a@example.com", "secret1")
        self.assertEqual(len(self.events), 1)

        unsubscribe()
        unsubscribe()
        await self.provider.sign_out()
        self.assertEqual(len(self.events), 2)
