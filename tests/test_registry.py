from __future__ import annotations

from dataclasses import dataclass
import unittest

from lazyscene_core.core.errors import DuplicateLayerError
from lazyscene_core.core.registry import LayerRegistry
from lazyscene_ui import Group, MorphLayer


@dataclass
class _Node:
    id: str
    z_index: int = 1
    visible: bool = True
    kind: str = "morph"

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id}


def _ids(registry: LayerRegistry) -> list[str]:
    return [layer.id for layer in registry.to_array()]


class LayerRegistryTests(unittest.TestCase):
    def test_add_sorts_by_z_index_keeping_insertion_order_for_ties(self) -> None:
        registry = LayerRegistry().add(_Node("a", 3), _Node("b", 1), _Node("c", 3), _Node("d", 2), _Node("e", 1))
        self.assertEqual(_ids(registry), ["b", "e", "d", "a", "c"])

    def test_add_flattens_and_skips_none(self) -> None:
        registry = LayerRegistry().add([_Node("a"), None, (_Node("b"), [_Node("c")])], None)
        self.assertEqual(_ids(registry), ["a", "b", "c"])

    def test_duplicate_id_raises_and_keeps_earlier_inserts(self) -> None:
        registry = LayerRegistry().add(_Node("a", 5))
        with self.assertRaisesRegex(DuplicateLayerError, "layer already exists: a"):
            registry.add(_Node("b", 1), _Node("a", 2), _Node("c", 0))
        self.assertEqual(_ids(registry), ["b", "a"])

    def test_remove_ignores_unknown_ids(self) -> None:
        registry = LayerRegistry().add(_Node("a"), _Node("b"))
        registry.remove("a", "missing")
        self.assertEqual(_ids(registry), ["b"])
        self.assertNotIn("a", registry)

    def test_order_stays_sorted_after_mixed_mutations(self) -> None:
        registry = LayerRegistry()
        registry.add(_Node("a", 4), _Node("b", 2))
        registry.remove("a")
        registry.add(_Node("c", 1), _Node("d", 2), _Node("a", 0))
        registry.remove("c")
        layers = registry.to_array()
        self.assertEqual([layer.z_index for layer in layers], sorted(layer.z_index for layer in layers))
        self.assertEqual(len({layer.id for layer in layers}), len(layers))
        self.assertEqual(_ids(registry), ["a", "b", "d"])

    def test_cross_lookup_descends_one_level_into_groups(self) -> None:
        inner = MorphLayer(id="inner")
        deep = MorphLayer(id="deep")
        registry = LayerRegistry().add(Group(id="outer").add(inner, Group(id="nested").add(deep)))
        self.assertIsNone(registry.get("inner"))
        self.assertIs(registry.get("inner", cross=True), inner)
        self.assertIsNone(registry.get("deep", cross=True))
        self.assertTrue(registry.has("nested", cross=True))

    def test_from_array_rebuilds_sorted(self) -> None:
        registry = LayerRegistry().add(_Node("x"))
        registry.from_array([_Node("b", 2), _Node("a", 1)])
        self.assertEqual(_ids(registry), ["a", "b"])
        with self.assertRaises(DuplicateLayerError):
            registry.from_array([_Node("a"), _Node("a")])

    def test_hooks_fire_on_add_and_remove(self) -> None:
        added: list[str] = []
        removed: list[str] = []
        registry = LayerRegistry(on_added=lambda layer: added.append(layer.id), on_removed=removed.append)
        registry.add(_Node("a"), _Node("b"))
        registry.remove("a", "zzz")
        self.assertEqual(added, ["a", "b"])
        self.assertEqual(removed, ["a"])


if __name__ == "__main__":
    unittest.main()
