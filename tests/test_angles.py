import unittest

import numpy as np

from orientation_ekf.errors import DegenerateStateError
from orientation_ekf.util import (
    dcm_from_euler,
    euler_from_dcm,
    quat_from_dcm,
    quaternion_identity,
    quaternion_multiply,
    quaternion_right_matrix,
    quaternion_conjugate,
    quaternion_normalize,
    quaternion_from_axis_angle,
    quaternion_from_rotation_vector,
    quaternion_to_axis_angle,
    quaternion_angle_between,
    quaternion_to_rotation_matrix,
)


class TestQuaternionAlgebra(unittest.TestCase):

    def test_identity_is_neutral(self):
        q = quaternion_from_axis_angle([1.0, 2.0, 3.0], 0.7)
        np.testing.assert_allclose(quaternion_multiply(quaternion_identity(), q), q)
        np.testing.assert_allclose(quaternion_multiply(q, quaternion_identity()), q)

    def test_conjugate_inverts_unit_quaternion(self):
        q = quaternion_from_axis_angle([0.0, 1.0, 1.0], 1.2)
        np.testing.assert_allclose(
            quaternion_multiply(q, quaternion_conjugate(q)), [1.0, 0.0, 0.0, 0.0], atol=1e-12
        )

    def test_right_matrix_matches_product(self):
        rng = np.random.default_rng(3)
        q = rng.standard_normal(4)
        p = rng.standard_normal(4)
        np.testing.assert_allclose(quaternion_right_matrix(p) @ q, quaternion_multiply(q, p), atol=1e-12)

    def test_composition_of_z_rotations(self):
        q1 = quaternion_from_axis_angle([0, 0, 1], np.pi / 4)
        q = quaternion_multiply(q1, q1)
        axis, angle = quaternion_to_axis_angle(q)
        self.assertAlmostEqual(angle, np.pi / 2, places=12)
        np.testing.assert_allclose(axis, [0, 0, 1], atol=1e-12)


class TestNormalization(unittest.TestCase):

    def test_normalize_gives_unit_norm(self):
        q = quaternion_normalize(np.array([2.0, 0.0, 0.0, 2.0]))
        self.assertAlmostEqual(np.linalg.norm(q), 1.0, places=15)

    def test_zero_quaternion_is_degenerate(self):
        with self.assertRaises(DegenerateStateError):
            quaternion_normalize(np.zeros(4))

    def test_nan_quaternion_is_degenerate(self):
        with self.assertRaises(DegenerateStateError):
            quaternion_normalize(np.array([np.nan, 0.0, 0.0, 0.0]))

    def test_float32_epsilon_is_used(self):
        tiny = np.array([1e-9, 0.0, 0.0, 0.0], dtype=np.float32)
        with self.assertRaises(DegenerateStateError):
            quaternion_normalize(tiny)
        # the same value is fine in double precision
        quaternion_normalize(tiny.astype(np.float64))


class TestAxisAngle(unittest.TestCase):

    def test_identity_reports_default_axis(self):
        axis, angle = quaternion_to_axis_angle(quaternion_identity())
        self.assertEqual(angle, 0.0)
        np.testing.assert_array_equal(axis, [0.0, 0.0, 1.0])

    def test_custom_default_axis(self):
        axis, angle = quaternion_to_axis_angle(quaternion_identity(), default_axis=(1.0, 0.0, 0.0))
        np.testing.assert_array_equal(axis, [1.0, 0.0, 0.0])

    def test_scalar_part_is_clamped(self):
        axis, angle = quaternion_to_axis_angle(np.array([1.0 + 1e-12, 1e-6, 0.0, 0.0]))
        self.assertTrue(np.isfinite(angle))
        np.testing.assert_allclose(axis, [1.0, 0.0, 0.0])

    def test_rotation_vector(self):
        q = quaternion_from_rotation_vector(np.array([0.0, -0.5, 0.0]))
        axis, angle = quaternion_to_axis_angle(q)
        self.assertAlmostEqual(angle, 0.5)
        np.testing.assert_allclose(axis, [0.0, -1.0, 0.0], atol=1e-12)
        np.testing.assert_array_equal(quaternion_from_rotation_vector(np.zeros(3)), [1, 0, 0, 0])

    def test_angle_between_ignores_sign(self):
        q = quaternion_from_axis_angle([1, 0, 0], 0.3)
        self.assertAlmostEqual(quaternion_angle_between(q, -q), 0.0, places=6)
        self.assertAlmostEqual(
            quaternion_angle_between(quaternion_identity(), q), 0.3, places=12
        )


class TestDcm(unittest.TestCase):

    def test_rotation_matrix_agrees_with_euler_dcm(self):
        roll, pitch, yaw = 0.1, -0.4, 1.3
        dcm = dcm_from_euler(roll, pitch, yaw)
        q = quat_from_dcm(dcm)
        np.testing.assert_allclose(quaternion_to_rotation_matrix(q), dcm, atol=1e-12)
        np.testing.assert_allclose(euler_from_dcm(dcm), (roll, pitch, yaw), atol=1e-12)

    def test_z_rotation_maps_x_to_y(self):
        R = quaternion_to_rotation_matrix(quaternion_from_axis_angle([0, 0, 1], np.pi / 2))
        np.testing.assert_allclose(R @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], atol=1e-12)


if __name__ == "__main__":
    unittest.main()
