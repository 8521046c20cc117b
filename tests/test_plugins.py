from __future__ import annotations

import unittest

from lazyscene_core.core.errors import PluginError
from lazyscene_core.core.plugins import PluginManager, ScenePlugin


class PluginManagerTests(unittest.TestCase):
    def test_register_and_dispatch(self) -> None:
        calls: list[tuple[object, tuple[object, ...]]] = []
        owner = object()
        manager = PluginManager(owner)
        manager.register(ScenePlugin("recorder", hooks={"on_resize": lambda o, *a: calls.append((o, a))}))
        manager.execute_hook("on_resize", 2.0)
        manager.execute_hook("before_render")
        self.assertEqual(calls, [(owner, (2.0,))])
        self.assertTrue(manager.has("recorder"))
        self.assertEqual(manager.list(), ["recorder"])

    def test_duplicate_and_missing_dependency(self) -> None:
        manager = PluginManager()
        manager.register(ScenePlugin("base"))
        with self.assertRaisesRegex(PluginError, "already registered"):
            manager.register(ScenePlugin("base"))
        with self.assertRaisesRegex(PluginError, "missing dependency `other`"):
            manager.register(ScenePlugin("child", dependencies=("other",)))

    def test_unregister_respects_dependents(self) -> None:
        manager = PluginManager()
        manager.register(ScenePlugin("base"))
        manager.register(ScenePlugin("child", dependencies=("base",)))
        with self.assertRaisesRegex(PluginError, "required by: child"):
            manager.unregister("base")
        manager.unregister("child")
        manager.unregister("base")
        self.assertIsNone(manager.get("base"))
        with self.assertRaisesRegex(PluginError, "not registered"):
            manager.unregister("base")

    def test_failed_install_is_not_registered(self) -> None:
        class _Refusing(ScenePlugin):
            def install(self, owner: object) -> bool:
                return False

        manager = PluginManager()
        with self.assertRaisesRegex(PluginError, "failed to install"):
            manager.register(_Refusing("nope"))
        self.assertFalse(manager.has("nope"))

    def test_hook_errors_are_routed_to_on_error(self) -> None:
        seen: list[Exception] = []

        def explode(owner: object) -> None:
            raise RuntimeError("boom")

        manager = PluginManager()
        manager.register(ScenePlugin("bad", hooks={"after_render": explode}))
        manager.register(ScenePlugin("watcher", hooks={"on_error": lambda owner, exc: seen.append(exc)}))
        with self.assertLogs("lazyscene_core.core.plugins", level="ERROR"):
            manager.execute_hook("after_render")
        self.assertEqual([str(exc) for exc in seen], ["boom"])

    def test_unknown_hooks_are_rejected(self) -> None:
        with self.assertRaisesRegex(ValueError, "unknown plugin hooks"):
            ScenePlugin("x", hooks={"on_tick": print})
        with self.assertRaisesRegex(ValueError, "unknown hook"):
            PluginManager().execute_hook("on_tick")
        with self.assertRaises(ValueError):
            ScenePlugin("  ")


if __name__ == "__main__":
    unittest.main()
