from __future__ import annotations

from typing import Callable, Iterable, Iterator, Protocol, cast

from .errors import DuplicateLayerError


class LayerNode(Protocol):
    id: str
    kind: str
    z_index: int
    visible: bool

    def to_dict(self) -> dict[str, object]:
        ...


class LayerContainer(LayerNode, Protocol):
    layers: list[LayerNode]

    def get(self, layer_id: str) -> LayerNode | None:
        ...


class LayerRegistry:
    """Identity-keyed layer collection kept sorted by z-index.

    Ties keep their relative insertion order. Cross lookups descend one level into groups.
    """

    def __init__(
        self,
        *,
        on_added: Callable[[LayerNode], None] | None = None,
        on_removed: Callable[[str], None] | None = None,
    ) -> None:
        self._layers: dict[str, LayerNode] = {}
        self._on_added = on_added
        self._on_removed = on_removed

    def add(self, *layers: LayerNode | Iterable[LayerNode] | None) -> "LayerRegistry":
        try:
            for layer in _flatten(layers):
                if layer.id in self._layers:
                    raise DuplicateLayerError(f"layer already exists: {layer.id}")
                self._layers[layer.id] = layer
                if self._on_added is not None:
                    self._on_added(layer)
        finally:
            self.sort()
        return self

    def remove(self, *layer_ids: str) -> "LayerRegistry":
        for layer_id in layer_ids:
            if self._layers.pop(layer_id, None) is not None and self._on_removed is not None:
                self._on_removed(layer_id)
        self.sort()
        return self

    def clear(self) -> "LayerRegistry":
        self._layers.clear()
        return self

    def get(self, layer_id: str, cross: bool = False) -> LayerNode | None:
        found = self._layers.get(layer_id)
        if found is not None or not cross:
            return found
        for layer in self._layers.values():
            if layer.kind != "group":
                continue
            child = cast(LayerContainer, layer).get(layer_id)
            if child is not None:
                return child
        return None

    def has(self, layer_id: str, cross: bool = False) -> bool:
        return self.get(layer_id, cross=cross) is not None

    def size(self) -> int:
        return len(self._layers)

    def keys(self) -> list[str]:
        return list(self._layers.keys())

    def values(self) -> list[LayerNode]:
        return list(self._layers.values())

    def entries(self) -> list[tuple[str, LayerNode]]:
        return list(self._layers.items())

    def to_array(self) -> list[LayerNode]:
        return list(self._layers.values())

    def from_array(self, layers: Iterable[LayerNode]) -> "LayerRegistry":
        rebuilt: dict[str, LayerNode] = {}
        for layer in layers:
            if layer.id in rebuilt:
                raise DuplicateLayerError(f"layer already exists: {layer.id}")
            rebuilt[layer.id] = layer
        self._layers = rebuilt
        self.sort()
        return self

    def sort(self) -> "LayerRegistry":
        ordered = sorted(self._layers.values(), key=lambda layer: layer.z_index)
        self._layers = {layer.id: layer for layer in ordered}
        return self

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[LayerNode]:
        return iter(list(self._layers.values()))

    def __contains__(self, layer_id: object) -> bool:
        return layer_id in self._layers


def _flatten(items: Iterable[object]) -> Iterator[LayerNode]:
    for item in items:
        if item is None:
            continue
        if isinstance(item, (list, tuple)):
            yield from _flatten(item)
        else:
            yield item
