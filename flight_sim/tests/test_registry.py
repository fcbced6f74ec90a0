from __future__ import annotations

import unittest

from flight_sim.core.physics_world import PhysicsWorld
from flight_sim.core.registry import create_frontend, create_world, register_builtin_components


class TestRegistry(unittest.TestCase):
    def setUp(self) -> None:
        register_builtin_components()

    def test_builtin_worlds_resolve(self) -> None:
        open_world = create_world("open")
        room = create_world("Room", {})
        self.assertIsInstance(open_world, PhysicsWorld)
        self.assertEqual(len(open_world.static_planes), 0)
        self.assertEqual(len(room.static_planes), 6)
        self.assertLess(room.gravity[1], 0.0)

    def test_unknown_component_raises_helpful_error(self) -> None:
        with self.assertRaises(ValueError) as e1:
            create_world("does-not-exist")
        self.assertIn("Unknown world", str(e1.exception))
        self.assertIn("open", str(e1.exception))

        with self.assertRaises(ValueError) as e2:
            create_frontend("does-not-exist", None)  # type: ignore[arg-type]
        self.assertIn("Unknown frontend", str(e2.exception))


if __name__ == "__main__":
    unittest.main()
