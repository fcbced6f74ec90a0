from __future__ import annotations

import unittest

import numpy as np

from flight_sim.core.physics_world import PhysicsWorld
from flight_sim.dynamics import DroneBody, DroneParams, RoomGeometry, StaticPlane

START = np.array([0.0, 0.0, -3.0])


class TestPhysicsWorld(unittest.TestCase):
    def test_open_world_holds_start_pose_without_force(self) -> None:
        world = PhysicsWorld()
        for _ in range(6):
            pos = world.step(0.2, (0.0, 0.0, 0.0))
        np.testing.assert_allclose(pos, START)
        np.testing.assert_allclose(world.get_drone_velocity(), np.zeros(3))

    def test_room_gravity_drops_monotonically(self) -> None:
        world = PhysicsWorld.room()
        heights = [world.get_drone_position()[1]]
        for _ in range(6):
            heights.append(world.step(0.2, (0.0, 0.0, 0.0))[1])
        self.assertTrue(all(b < a for a, b in zip(heights, heights[1:])))
        # Horizontal position is untouched by gravity.
        np.testing.assert_allclose(world.get_drone_position()[[0, 2]], START[[0, 2]])

    def test_forward_force_then_damping(self) -> None:
        world = PhysicsWorld()
        world.step(0.2, (0.0, 0.0, 0.3))
        vz = world.get_drone_velocity()[2]
        self.assertGreater(vz, 0.0)
        self.assertGreater(world.get_drone_position()[2], START[2])

        speeds = [vz]
        for _ in range(5):
            world.step(0.2, (0.0, 0.0, 0.0))
            speeds.append(world.get_drone_velocity()[2])
        self.assertTrue(all(0.0 < b < a for a, b in zip(speeds, speeds[1:])))

    def test_step_returns_copy_of_position(self) -> None:
        world = PhysicsWorld()
        pos = world.step(0.1, (1.0, 0.0, 0.0))
        pos[:] = 99.0
        self.assertFalse(np.allclose(world.get_drone_position(), 99.0))

    def test_dt_is_clamped_to_minimum(self) -> None:
        a = PhysicsWorld()
        b = PhysicsWorld()
        a.step(0.0, (0.0, 0.0, 1.0))
        b.step(1.0 / 240.0, (0.0, 0.0, 1.0))
        np.testing.assert_allclose(a.get_drone_velocity(), b.get_drone_velocity())
        self.assertGreater(a.get_drone_velocity()[2], 0.0)

    def test_stop_variants_scale_velocity(self) -> None:
        world = PhysicsWorld()
        world.step(0.2, (0.0, 0.0, 0.3))
        v0 = world.get_drone_velocity()

        world.gentle_stop()
        np.testing.assert_allclose(world.get_drone_velocity(), v0 * 0.8)
        world.emergency_brake()
        np.testing.assert_allclose(world.get_drone_velocity(), v0 * 0.8 * 0.5)
        world.stop_drone()
        np.testing.assert_allclose(world.get_drone_velocity(), np.zeros(3))

    def test_reset_restores_start_pose(self) -> None:
        world = PhysicsWorld()
        world.apply_rotation_delta((0.1, 0.2, 0.0))
        world.step(0.2, (0.3, 0.5, 0.3))
        world.reset_drone()
        np.testing.assert_allclose(world.get_drone_position(), START)
        np.testing.assert_allclose(world.get_drone_velocity(), np.zeros(3))
        np.testing.assert_allclose(world.get_drone_rotation(), [1.0, 0.0, 0.0, 0.0])

    def test_rotation_delta_changes_attitude_and_zeroes_spin(self) -> None:
        world = PhysicsWorld()
        world.step_with_torque(0.2, (0.0, 0.0, 0.0), (0.0, 0.05, 0.0))
        self.assertGreater(np.linalg.norm(world.get_drone_angular_velocity()), 0.0)

        world.apply_rotation_delta((0.0, 0.02, 0.0))
        np.testing.assert_allclose(world.get_drone_angular_velocity(), np.zeros(3))
        quat = world.get_drone_rotation()
        self.assertAlmostEqual(float(np.linalg.norm(quat)), 1.0)
        self.assertLess(quat[0], 1.0)

    def test_missing_drone_reads_as_zeros(self) -> None:
        world = PhysicsWorld()
        world._drone = None
        np.testing.assert_array_equal(world.get_drone_position(), np.zeros(3))
        np.testing.assert_array_equal(world.get_drone_velocity(), np.zeros(3))
        np.testing.assert_array_equal(world.get_drone_angular_velocity(), np.zeros(3))
        np.testing.assert_array_equal(world.get_drone_rotation(), [1.0, 0.0, 0.0, 0.0])
        np.testing.assert_array_equal(world.step(0.2, (1.0, 0.0, 0.0)), np.zeros(3))
        world.reset_drone()
        world.stop_drone()
        world.apply_rotation_delta((0.1, 0.0, 0.0))

    def test_state_snapshot(self) -> None:
        state = PhysicsWorld().state()
        np.testing.assert_allclose(state.position, START)
        self.assertEqual(state.speed, 0.0)
        np.testing.assert_allclose(state.attitude_quat, [1.0, 0.0, 0.0, 0.0])

    def test_room_floor_stops_fall(self) -> None:
        world = PhysicsWorld.room({"room": {"gravity": [0.0, -9.81, 0.0], "half_extents": [10.0, 1.0, 10.0]}})
        for _ in range(200):
            world.step(0.05, (0.0, 0.0, 0.0))
        radius = world.drone_params.radius
        self.assertGreaterEqual(world.get_drone_position()[1], -1.0 + radius - 1e-9)
        self.assertIn("floor", world.last_contacts)


class TestDynamics(unittest.TestCase):
    def test_sphere_mass(self) -> None:
        params = DroneParams()
        self.assertAlmostEqual(params.mass, 4.0 / 3.0 * np.pi * 0.35**3)
        self.assertAlmostEqual(params.inertia, 0.4 * params.mass * 0.35**2)

    def test_plane_bounce_applies_restitution(self) -> None:
        body = DroneBody(position=np.array([0.0, 0.2, 0.0]))
        body.velocity = np.array([0.0, -1.0, 0.0])
        floor = StaticPlane(np.array([0.0, 1.0, 0.0]), 0.0, "floor")

        self.assertTrue(floor.resolve(body))
        self.assertAlmostEqual(body.position[1], body.params.radius)
        self.assertAlmostEqual(body.velocity[1], 0.3)

    def test_plane_friction_is_bounded(self) -> None:
        body = DroneBody(position=np.array([0.0, 0.3, 0.0]))
        body.velocity = np.array([5.0, -0.1, 0.0])
        floor = StaticPlane(np.array([0.0, 1.0, 0.0]), 0.0)
        floor.resolve(body)
        jn = 1.3 * 0.1
        self.assertAlmostEqual(body.velocity[0], 5.0 - 0.7 * jn)

    def test_separated_plane_is_ignored(self) -> None:
        body = DroneBody(position=np.array([0.0, 2.0, 0.0]))
        floor = StaticPlane(np.array([0.0, 1.0, 0.0]), 0.0)
        self.assertFalse(floor.resolve(body))

    def test_room_planes_face_inward(self) -> None:
        planes = RoomGeometry().planes()
        self.assertEqual(len(planes), 6)
        self.assertEqual(
            sorted(p.name for p in planes),
            ["ceiling", "floor", "wall_east", "wall_north", "wall_south", "wall_west"],
        )
        for plane in planes:
            self.assertGreater(plane.signed_distance(np.zeros(3)), 0.0)


if __name__ == "__main__":
    unittest.main()
