from __future__ import annotations

import math
import unittest

import numpy as np

from flight_sim.core.camera import (
    Camera,
    look_at_rh,
    parse_camera_mode,
    perspective,
    project_points,
    world_to_screen,
)
from flight_sim.core.types import CameraMode

DRONE_START = np.array([0.0, 0.0, -3.0])


class TestProjection(unittest.TestCase):
    def test_perspective_layout(self) -> None:
        proj = perspective(320.0 / 240.0, math.radians(60.0), 0.1, 100.0)
        f = 1.0 / math.tan(math.radians(30.0))
        self.assertAlmostEqual(proj[1, 1], f)
        self.assertAlmostEqual(proj[0, 0], f / (320.0 / 240.0))
        self.assertEqual(proj[3, 2], -1.0)
        self.assertEqual(proj[3, 3], 0.0)

    def test_identity_matrix_screen_mapping(self) -> None:
        # With an identity matrix w == 1, so NDC equals the input point.
        vp = np.eye(4)
        x, y, z = world_to_screen((0.5, 0.25, 0.3), vp, 320, 240)
        self.assertAlmostEqual(x, (0.5 + 1.0) * 0.5 * 320)
        self.assertAlmostEqual(y, (1.0 - 0.25) * 0.5 * 240)
        self.assertAlmostEqual(z, 0.3)

        top_left = world_to_screen((-1.0, 1.0, 0.0), vp, 320, 240)
        self.assertAlmostEqual(top_left[0], 0.0)
        self.assertAlmostEqual(top_left[1], 0.0)

    def test_behind_camera_is_none(self) -> None:
        view = look_at_rh(np.zeros(3), np.array([0.0, 0.0, 1.0]), np.array([0.0, 1.0, 0.0]))
        vp = perspective(4.0 / 3.0, math.radians(60.0), 0.1, 100.0) @ view
        self.assertIsNone(world_to_screen((0.0, 0.0, -5.0), vp, 320, 240))
        self.assertIsNone(world_to_screen((0.0, 0.0, 0.0), vp, 320, 240))
        self.assertIsNotNone(world_to_screen((0.0, 0.0, 5.0), vp, 320, 240))

    def test_off_screen_points_are_not_clipped(self) -> None:
        view = look_at_rh(np.zeros(3), np.array([0.0, 0.0, 1.0]), np.array([0.0, 1.0, 0.0]))
        vp = perspective(4.0 / 3.0, math.radians(60.0), 0.1, 100.0) @ view
        result = world_to_screen((50.0, 0.0, 5.0), vp, 320, 240)
        self.assertIsNotNone(result)
        self.assertTrue(result[0] < 0.0 or result[0] >= 320.0)

    def test_project_points_matches_scalar(self) -> None:
        cam = Camera()
        cam.update(DRONE_START)
        vp = cam.get_view_projection_matrix()
        points = np.array([[0.0, 0.0, 0.0], [1.0, -1.0, 2.0], [-3.0, 0.0, -10.0]])
        screen, valid = project_points(points, vp, 320, 240)
        for point, row, ok in zip(points, screen, valid):
            scalar = world_to_screen(point, vp, 320, 240)
            self.assertEqual(scalar is not None, bool(ok))
            if scalar is not None:
                np.testing.assert_allclose(row, scalar)

    def test_look_at_degenerate_up_stays_finite(self) -> None:
        view = look_at_rh(np.zeros(3), np.array([0.0, 5.0, 0.0]), np.array([0.0, 1.0, 0.0]))
        self.assertTrue(np.all(np.isfinite(view)))


class TestCamera(unittest.TestCase):
    def test_default_third_person_centres_drone(self) -> None:
        cam = Camera()
        cam.update(DRONE_START)
        np.testing.assert_allclose(cam.position, DRONE_START + np.array([-1.5, 1.0, -2.0]))
        x, y, _ = world_to_screen(DRONE_START, cam.get_view_projection_matrix(), 320, 240)
        self.assertAlmostEqual(x, 160.0, places=6)
        self.assertAlmostEqual(y, 120.0, places=6)

    def test_first_person_looks_along_body_forward(self) -> None:
        cam = Camera({"mode": "first_person"})
        cam.update(DRONE_START, np.array([1.0, 0.0, 0.0, 0.0]))
        np.testing.assert_allclose(cam.position, DRONE_START)
        np.testing.assert_allclose(cam.target, DRONE_START + np.array([0.0, 0.0, 1.0]))
        vp = cam.get_view_projection_matrix()
        ahead = world_to_screen(DRONE_START + np.array([0.0, 0.0, 10.0]), vp, 320, 240)
        self.assertAlmostEqual(ahead[0], 160.0, places=6)
        self.assertIsNone(world_to_screen(DRONE_START - np.array([0.0, 0.0, 10.0]), vp, 320, 240))

    def test_free_mode_is_not_auto_updated(self) -> None:
        cam = Camera()
        cam.update(DRONE_START)
        before = cam.position.copy()
        cam.set_mode(CameraMode.FREE)
        cam.update(np.array([5.0, 5.0, 5.0]))
        np.testing.assert_allclose(cam.position, before)

    def test_look_rotation_moves_chase_camera(self) -> None:
        cam = Camera()
        cam.rotate_look((0.0, 0.5, 0.0))
        cam.update(DRONE_START)
        self.assertFalse(np.allclose(cam.position, DRONE_START + np.array([-1.5, 1.0, -2.0])))
        # Still aimed at the drone.
        np.testing.assert_allclose(cam.target, DRONE_START)

        cam.reset_look()
        cam.update(DRONE_START)
        np.testing.assert_allclose(cam.position, DRONE_START + np.array([-1.5, 1.0, -2.0]))

    def test_set_aspect(self) -> None:
        cam = Camera()
        self.assertAlmostEqual(cam.aspect, 320.0 / 240.0)
        cam.set_aspect(100, 50)
        self.assertAlmostEqual(cam.get_projection_matrix()[0, 0] * 2.0, cam.get_projection_matrix()[1, 1])

    def test_parse_camera_mode(self) -> None:
        self.assertIs(parse_camera_mode("first-person"), CameraMode.FIRST_PERSON)
        self.assertIs(parse_camera_mode(CameraMode.FREE), CameraMode.FREE)
        with self.assertRaises(ValueError) as e:
            parse_camera_mode("orbit")
        self.assertIn("Unknown camera mode", str(e.exception))


if __name__ == "__main__":
    unittest.main()
