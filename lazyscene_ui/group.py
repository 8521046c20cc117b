from __future__ import annotations

from typing import ClassVar, Iterable

from lazyscene_core.core.errors import DuplicateLayerError
from lazyscene_core.core.registry import LayerNode

from .base import new_layer_id


class Group:
    """Ordered container of layers drawn together; children stay sorted by z-index."""

    kind: ClassVar[str] = "group"

    def __init__(self, *, id: str | None = None, z_index: int = 1, visible: bool = True) -> None:
        self.id = id if id is not None else new_layer_id(self.kind)
        if not self.id.strip():
            raise ValueError("group id must be non-empty")
        self.z_index = int(z_index)
        self.visible = bool(visible)
        self.layers: list[LayerNode] = []

    def set_id(self, group_id: str) -> "Group":
        if not group_id.strip():
            raise ValueError("group id must be non-empty")
        self.id = group_id
        return self

    def set_z_index(self, z_index: int) -> "Group":
        self.z_index = int(z_index)
        return self

    def set_visible(self, visible: bool) -> "Group":
        self.visible = bool(visible)
        return self

    def add(self, *layers: LayerNode | Iterable[LayerNode] | None) -> "Group":
        incoming = list(_flatten(layers))
        seen = {layer.id for layer in self.layers}
        for layer in incoming:
            if layer.id in seen:
                raise DuplicateLayerError(f"layer already exists in group {self.id}: {layer.id}")
            seen.add(layer.id)
        self.layers = sorted(self.layers + incoming, key=lambda layer: layer.z_index)
        return self

    def remove(self, *layer_ids: str) -> "Group":
        drop = set(layer_ids)
        self.layers = [layer for layer in self.layers if layer.id not in drop]
        return self

    def clear(self) -> "Group":
        self.layers = []
        return self

    def get(self, layer_id: str) -> LayerNode | None:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def get_all(self) -> list[LayerNode]:
        return list(self.layers)

    def length(self) -> int:
        return len(self.layers)

    def resize(self, ratio: float) -> "Group":
        for layer in self.layers:
            layer.resize(ratio)
        return self

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "type": self.kind,
            "zIndex": self.z_index,
            "visible": self.visible,
            "layers": [layer.to_dict() for layer in self.layers],
        }

    def __len__(self) -> int:
        return len(self.layers)

    def __repr__(self) -> str:
        return f"Group(id={self.id!r}, z_index={self.z_index}, layers={len(self.layers)})"


def _flatten(items: Iterable[object]) -> Iterable[LayerNode]:
    for item in items:
        if item is None:
            continue
        if isinstance(item, (list, tuple)):
            yield from _flatten(item)
        else:
            yield item
