import unittest

import numpy as np

from orientation_ekf import OrientationEstimator
from orientation_ekf.sensors import (
    Accelerometer3Axis,
    Gyroscope3Axis,
    HarmonicProfile,
    Magnetometer3Axis,
    SensorSample,
    SimulatedIMU,
    SteadyRateProfile,
    dispatch,
)
from orientation_ekf.util import quat_from_dcm, quaternion_angle_between


class TestUpdateRate(unittest.TestCase):
    """Rate limited sensors skip steps that fall inside their update period."""

    def test_rate_limited_sensor(self):
        accel = Accelerometer3Axis(update_rate_hz=10.0)
        dt = 0.01
        updates = 0
        for k in range(100):
            if accel.step(np.zeros(3), dt, k * dt) is not None:
                updates += 1
        self.assertEqual(updates, 10)
        print(f"[PASS] 10 Hz accelerometer stepped at 100 Hz for 1 s -> {updates} updates")

    def test_unlimited_sensor_updates_every_step(self):
        gyro = Gyroscope3Axis()
        outputs = [gyro.step(np.ones(3), 0.01, k * 0.01) for k in range(20)]
        self.assertTrue(all(o is not None for o in outputs))
        self.assertEqual(gyro.get_history_matrix().shape, (20, 3))

    def test_invalid_rate(self):
        with self.assertRaises(ValueError):
            Gyroscope3Axis(update_rate_hz=0.0)


class TestErrorModel(unittest.TestCase):

    def test_seeded_noise_is_reproducible(self):
        a = Gyroscope3Axis(white_noise_std=0.1, bias_instability_std=0.01, seed=5)
        b = Gyroscope3Axis(white_noise_std=0.1, bias_instability_std=0.01, seed=5)
        for k in range(10):
            np.testing.assert_array_equal(
                a.step(np.zeros(3), 0.01, k * 0.01), b.step(np.zeros(3), 0.01, k * 0.01)
            )

    def test_saturation_and_quantization(self):
        gyro = Gyroscope3Axis(saturation_limit=2.0, quantization_bits=4, quantization_range=4.0)
        out = gyro.step(np.array([10.0, -0.3, 0.26]), 0.01, 0.0)
        # LSB = 8 / 16 = 0.5
        np.testing.assert_allclose(out, [2.0, -0.5, 0.5])

    def test_wrong_dimension(self):
        with self.assertRaises(ValueError):
            Magnetometer3Axis().step(np.zeros(2), 0.01, 0.0)


class TestSimulatedIMU(unittest.TestCase):

    def test_level_and_north_facing_readings(self):
        imu = SimulatedIMU()
        samples = imu.update_sim(0.0, 0.01, np.eye(3), np.zeros(3))
        readings = {s.kind: s.values for s in samples}
        np.testing.assert_allclose(readings["accel"], [0.0, 0.0, 9.81])
        np.testing.assert_allclose(readings["mag"], [0.0, 20.0, 0.0])
        np.testing.assert_allclose(readings["gyro"], [0.0, 0.0, 0.0])

    def test_reference_vectors_are_not_shared(self):
        a, b = SimulatedIMU(), SimulatedIMU()
        self.assertIsNot(a.mag_field_ground, b.mag_field_ground)
        a.mag_field_ground[1] = 50.0
        np.testing.assert_array_equal(b.mag_field_ground, [0.0, 20.0, 0.0])

        field = np.array([0.0, 30.0, -10.0])
        imu = SimulatedIMU(mag_field_ground=field)
        field[1] = 0.0
        samples = imu.update_sim(0.0, 0.01, np.eye(3), np.zeros(3))
        readings = {s.kind: s.values for s in samples}
        np.testing.assert_allclose(readings["mag"], [0.0, 30.0, -10.0])

    def test_samples_sorted_for_dispatch(self):
        imu = SimulatedIMU()
        samples = imu.update_sim(0.25, 0.01, np.eye(3), np.zeros(3))
        self.assertEqual([s.kind for s in samples], ["gyro", "mag", "accel"])
        self.assertTrue(all(s.timestamp == 250_000 for s in samples))

    def test_dispatch_calls_matching_callbacks(self):
        class Spy:
            def __init__(self):
                self.calls = []

            def on_angular_velocity_sample(self, *args):
                self.calls.append(("gyro",) + args)

            def on_specific_force_sample(self, *args):
                self.calls.append(("accel",) + args)

            def on_magnetic_field_sample(self, *args):
                self.calls.append(("mag",) + args)

        spy = Spy()
        dispatch(spy, [
            SensorSample("accel", np.array([0.0, 0.0, 9.81]), 5),
            SensorSample("gyro", np.array([0.1, 0.2, 0.3]), 5),
            SensorSample("mag", np.array([0.0, 20.0, 0.0]), 3),
        ])
        self.assertEqual([c[0] for c in spy.calls], ["mag", "gyro", "accel"])
        self.assertEqual(spy.calls[1], ("gyro", 0.1, 0.2, 0.3, 5))

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            dispatch(OrientationEstimator(), [SensorSample("baro", np.zeros(3), 0)])


class TestMotionProfiles(unittest.TestCase):

    def test_steady_rate_profile(self):
        profile = SteadyRateProfile(axis=[0, 0, 1], rate_rads=0.5)
        dcm, omega = profile.get_state(np.pi)
        np.testing.assert_allclose(omega, [0.0, 0.0, 0.5])
        # pi/2 about up maps east onto north
        np.testing.assert_allclose(dcm @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], atol=1e-12)

    def test_harmonic_rate_is_angle_derivative(self):
        profile = HarmonicProfile(axis=[1, 0, 0], amplitude_rad=0.3, freq_hz=0.5)
        t, h = 0.7, 1e-6
        a1, _ = profile.get_kinematics(t - h)
        a2, _ = profile.get_kinematics(t + h)
        _, rate = profile.get_kinematics(t)
        self.assertAlmostEqual(rate, (a2 - a1) / (2 * h), places=6)


class TestClosedLoop(unittest.TestCase):
    """Estimator fed by the simulated IMU tracks the motion profile truth."""

    def run_profile(self, profile, duration=10.0, dt=0.01):
        imu = SimulatedIMU()
        est = OrientationEstimator()
        errors = []
        for k in range(int(round(duration / dt))):
            t = k * dt
            dcm, omega = profile.get_state(t)
            dispatch(est, imu.update_sim(t, dt, dcm, omega))
            errors.append(quaternion_angle_between(est.quaternion, quat_from_dcm(dcm)))
        return np.degrees(np.array(errors))

    def test_turntable(self):
        errors = self.run_profile(SteadyRateProfile(axis=[0, 0, 1], rate_rads=0.5))
        self.assertLess(errors[500:].max(), 1.0)
        print(f"[PASS] turntable max error over last 5 s: {errors[500:].max():.4f} deg")

    def test_pendulum(self):
        errors = self.run_profile(HarmonicProfile(axis=[1, 1, 0], amplitude_rad=0.5, freq_hz=0.2))
        self.assertLess(errors[500:].max(), 2.0)
        print(f"[PASS] pendulum max error over last 5 s: {errors[500:].max():.4f} deg")


if __name__ == "__main__":
    unittest.main()
