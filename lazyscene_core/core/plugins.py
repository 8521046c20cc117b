from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Callable, Mapping, Protocol, Sequence

from .errors import PluginError


LOGGER = logging.getLogger(__name__)

HOOK_NAMES: tuple[str, ...] = (
    "before_render",
    "after_render",
    "before_export",
    "after_export",
    "on_resize",
    "on_layer_added",
    "on_layer_removed",
    "on_canvas_created",
    "on_layer_modified",
    "on_animation_frame",
    "on_error",
)


class LazyPlugin(Protocol):
    name: str
    version: str
    dependencies: Sequence[str]
    hooks: Mapping[str, Callable[..., None]]

    def install(self, owner: object) -> bool:
        ...

    def uninstall(self, owner: object) -> bool:
        ...


@dataclass
class ScenePlugin:
    """Convenience base for plugins that only contribute hooks."""

    name: str
    version: str = "0.1.0"
    description: str | None = None
    dependencies: tuple[str, ...] = ()
    hooks: dict[str, Callable[..., None]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("plugin name must be non-empty")
        unknown = sorted(set(self.hooks) - set(HOOK_NAMES))
        if unknown:
            raise ValueError(f"unknown plugin hooks: {unknown}")

    def install(self, owner: object) -> bool:
        return True

    def uninstall(self, owner: object) -> bool:
        return True


@dataclass(frozen=True)
class _PluginEntry:
    plugin: LazyPlugin
    installed_at_ns: int


class PluginManager:
    """Per-scene plugin registry and hook dispatcher."""

    def __init__(self, owner: object | None = None) -> None:
        self._owner = owner
        self._plugins: dict[str, _PluginEntry] = {}

    def bind(self, owner: object) -> None:
        self._owner = owner

    def register(self, plugin: LazyPlugin) -> None:
        if plugin.name in self._plugins:
            raise PluginError(f"plugin already registered: {plugin.name}")
        for dependency in plugin.dependencies:
            if dependency not in self._plugins:
                raise PluginError(f"plugin `{plugin.name}` requires missing dependency `{dependency}`")
        if not plugin.install(self._owner):
            raise PluginError(f"plugin `{plugin.name}` failed to install")
        self._plugins[plugin.name] = _PluginEntry(plugin=plugin, installed_at_ns=time.time_ns())
        LOGGER.debug("registered plugin %s %s", plugin.name, plugin.version)

    def unregister(self, name: str) -> None:
        entry = self._plugins.get(name)
        if entry is None:
            raise PluginError(f"plugin not registered: {name}")
        dependents = [other for other, e in self._plugins.items() if name in e.plugin.dependencies]
        if dependents:
            raise PluginError(f"plugin `{name}` is required by: {', '.join(dependents)}")
        if not entry.plugin.uninstall(self._owner):
            raise PluginError(f"plugin `{name}` failed to uninstall")
        del self._plugins[name]

    def get(self, name: str) -> LazyPlugin | None:
        entry = self._plugins.get(name)
        return None if entry is None else entry.plugin

    def list(self) -> list[str]:
        return list(self._plugins.keys())

    def has(self, name: str) -> bool:
        return name in self._plugins

    def execute_hook(self, hook: str, *args: object) -> None:
        if hook not in HOOK_NAMES:
            raise ValueError(f"unknown hook: {hook}")
        for name, entry in list(self._plugins.items()):
            fn = entry.plugin.hooks.get(hook)
            if fn is None:
                continue
            try:
                fn(self._owner, *args)
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("plugin `%s` hook `%s` failed: %s", name, hook, exc)
                if hook != "on_error":
                    self.execute_hook("on_error", exc)
