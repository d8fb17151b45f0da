import unittest
import torch
import numpy as np
import sys
import os

# Ensure pareconlib is in the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

try:
    from pareconlib.exceptions import ParameterError, ReconstructionError, ShapeError
    from pareconlib.modalities.photoacoustic.data import (
        AxisOrder,
        BoundaryRecording,
        ReconstructedVolume,
        normalize_recording,
    )
    from pareconlib.modalities.photoacoustic.utils import gaussian_source_recording, make_ball
    PARECONLIB_PAT_AVAILABLE = True
except ImportError as e:
    print(f"Could not import photoacoustic data modules for testing: {e}")
    PARECONLIB_PAT_AVAILABLE = False


@unittest.skipIf(not PARECONLIB_PAT_AVAILABLE, "pareconlib.modalities.photoacoustic module not available")
class TestAxisOrder(unittest.TestCase):
    def test_permutations(self):
        self.assertEqual(AxisOrder.DIM1_DIM2_TIME.permutation, (0, 1, 2))
        self.assertEqual(AxisOrder.DIM2_DIM1_TIME.permutation, (1, 0, 2))
        self.assertEqual(AxisOrder.TIME_DIM1_DIM2.permutation, (1, 2, 0))
        self.assertEqual(AxisOrder.TIME_DIM2_DIM1.permutation, (2, 1, 0))

    def test_coerce(self):
        self.assertIs(AxisOrder.coerce('zyt'), AxisOrder.DIM2_DIM1_TIME)
        self.assertIs(AxisOrder.coerce('DIM1_DIM2_TIME'), AxisOrder.DIM1_DIM2_TIME)
        self.assertIs(AxisOrder.coerce(AxisOrder.TIME_DIM2_DIM1), AxisOrder.TIME_DIM2_DIM1)
        with self.assertRaises(ParameterError):
            AxisOrder.coerce('xyz')
        with self.assertRaises(ParameterError):
            AxisOrder.coerce(3)


@unittest.skipIf(not PARECONLIB_PAT_AVAILABLE, "pareconlib.modalities.photoacoustic module not available")
class TestNormalizeRecording(unittest.TestCase):
    def setUp(self):
        self.canonical = np.arange(4 * 5 * 6, dtype=np.float64).reshape(4, 5, 6)
        self.params = dict(spacing1=1e-4, spacing2=2e-4, dt=2.5e-8, sound_speed=1500.0)

    def test_canonical_passthrough(self):
        recording = normalize_recording(self.canonical, **self.params)
        self.assertIsInstance(recording, BoundaryRecording)
        self.assertEqual(recording.shape, (4, 5, 6))
        self.assertEqual(recording.n_time, 6)
        np.testing.assert_array_equal(recording.data.numpy(), self.canonical)
        self.assertEqual((recording.spacing1, recording.spacing2), (1e-4, 2e-4))
        np.testing.assert_allclose(recording.time_vector, np.arange(6) * 2.5e-8)

    def test_every_layout_canonicalises(self):
        layouts = {
            AxisOrder.DIM1_DIM2_TIME: (0, 1, 2),
            AxisOrder.DIM2_DIM1_TIME: (1, 0, 2),
            AxisOrder.TIME_DIM1_DIM2: (2, 0, 1),
            AxisOrder.TIME_DIM2_DIM1: (2, 1, 0),
        }
        for axis_order, physical in layouts.items():
            with self.subTest(axis_order=axis_order):
                raw = np.transpose(self.canonical, physical)
                recording = normalize_recording(raw, axis_order=axis_order, **self.params)
                np.testing.assert_array_equal(recording.data.numpy(), self.canonical)
                # spacings keep their logical meaning
                self.assertEqual((recording.spacing1, recording.spacing2), (1e-4, 2e-4))

    def test_torch_input_and_integer_promotion(self):
        recording = normalize_recording(torch.ones((3, 3, 4), dtype=torch.float32), **self.params)
        self.assertEqual(recording.data.dtype, torch.float32)
        recording = normalize_recording(np.ones((3, 3, 4), dtype=np.int32), **self.params)
        self.assertEqual(recording.data.dtype, torch.float64)

    def test_caller_array_not_modified(self):
        raw = self.canonical.copy()
        normalize_recording(raw, axis_order='tzy', spacing1=1e-4, spacing2=1e-4, dt=1e-8, sound_speed=1500.0)
        np.testing.assert_array_equal(raw, self.canonical)

    def test_two_dimensional_input(self):
        with self.assertRaises(ShapeError):
            normalize_recording(np.zeros((8, 16)), **self.params)

    def test_four_dimensional_input(self):
        with self.assertRaises(ShapeError):
            normalize_recording(np.zeros((2, 3, 4, 5)), **self.params)

    def test_single_time_sample(self):
        with self.assertRaises(ShapeError) as ctx:
            normalize_recording(np.zeros((8, 8, 1)), **self.params)
        self.assertIn('time', str(ctx.exception))

    def test_single_sample_spatial_axis_after_permutation(self):
        raw = np.zeros((10, 1, 8))  # (time, dim1, dim2)
        with self.assertRaises(ShapeError):
            normalize_recording(raw, axis_order=AxisOrder.TIME_DIM1_DIM2, **self.params)

    def test_declared_shape(self):
        raw = np.zeros((6, 4, 5))  # time first
        recording = normalize_recording(raw, axis_order='tyz', shape=(4, 5, 6), **self.params)
        self.assertEqual(recording.shape, (4, 5, 6))
        with self.assertRaises(ShapeError):
            normalize_recording(raw, axis_order='yzt', shape=(4, 5, 6), **self.params)

    def test_invalid_scalars(self):
        cases = [
            dict(sound_speed=0.0),
            dict(sound_speed=-1500.0),
            dict(dt=-1e-6),
            dict(dt=0.0),
            dict(spacing1=float('nan')),
            dict(spacing2=float('inf')),
            dict(dt='fast'),
        ]
        for override in cases:
            with self.subTest(override=override):
                params = dict(self.params, **override)
                with self.assertRaises(ParameterError) as ctx:
                    normalize_recording(self.canonical, **params)
                self.assertIn(next(iter(override)), str(ctx.exception))

    def test_invalid_samples(self):
        with self.assertRaises(ParameterError):
            normalize_recording(self.canonical.astype(np.complex128), **self.params)
        bad = self.canonical.copy()
        bad[1, 2, 3] = np.nan
        with self.assertRaises(ParameterError):
            normalize_recording(bad, **self.params)

    def test_error_hierarchy(self):
        self.assertTrue(issubclass(ShapeError, ReconstructionError))
        self.assertTrue(issubclass(ShapeError, ValueError))
        self.assertTrue(issubclass(ParameterError, ValueError))


@unittest.skipIf(not PARECONLIB_PAT_AVAILABLE, "pareconlib.modalities.photoacoustic module not available")
class TestBoundaryRecordingAndVolume(unittest.TestCase):
    def test_transposed(self):
        data = torch.arange(2 * 3 * 4, dtype=torch.float64).reshape(2, 3, 4)
        recording = BoundaryRecording(data, 1e-4, 3e-4, 1e-8, 1500.0)
        swapped = recording.transposed()
        self.assertEqual(swapped.shape, (3, 2, 4))
        self.assertEqual((swapped.spacing1, swapped.spacing2), (3e-4, 1e-4))
        self.assertTrue(torch.equal(swapped.data, data.transpose(0, 1)))

    def test_reconstructed_volume(self):
        volume = ReconstructedVolume(torch.zeros((4, 2, 3)), (1.5e-5, 1e-4, 1e-4))
        self.assertEqual(volume.shape, (4, 2, 3))
        np.testing.assert_allclose(volume.depth_vector, np.arange(4) * 1.5e-5)
        self.assertIsInstance(volume.numpy(), np.ndarray)
        self.assertIsNone(volume.diagnostics)
        with self.assertRaises(ShapeError):
            ReconstructedVolume(torch.zeros((4, 2)), (1.0, 1.0, 1.0))


@unittest.skipIf(not PARECONLIB_PAT_AVAILABLE, "pareconlib.modalities.photoacoustic module not available")
class TestTestSources(unittest.TestCase):
    def test_gaussian_source_at_time_zero(self):
        depth, sigma = 4e-4, 2e-4
        data = gaussian_source_recording([(depth, 2e-4, 2e-4)], 3.0, sigma=sigma, sensor_shape=(5, 5),
                                         spacing1=1e-4, spacing2=1e-4, dt=2e-8, n_time=50, sound_speed=1500.0)
        self.assertEqual(tuple(data.shape), (5, 5, 50))
        # at t = 0 the field is the initial Gaussian itself
        self.assertAlmostEqual(float(data[2, 2, 0]), 3.0 * np.exp(-depth ** 2 / (2 * sigma ** 2)), places=10)
        # the outgoing pulse peaks near r = ct
        arrival = int(torch.argmax(data[2, 2, :]))
        self.assertLessEqual(abs(arrival - depth / (1500.0 * 2e-8)), 10)

    def test_gaussian_source_validation(self):
        with self.assertRaises(ParameterError):
            gaussian_source_recording([(0.0, 0.0, 0.0)], 1.0, sigma=1e-4, sensor_shape=(3, 3),
                                      spacing1=1e-4, spacing2=1e-4, dt=1e-8, n_time=8, sound_speed=1500.0)
        with self.assertRaises(ShapeError):
            gaussian_source_recording([(1e-3, 0.0, 0.0), (2e-3, 0.0, 0.0)], [1.0, 2.0, 3.0], sigma=1e-4,
                                      sensor_shape=(3, 3), spacing1=1e-4, spacing2=1e-4, dt=1e-8,
                                      n_time=8, sound_speed=1500.0)

    def test_make_ball(self):
        ball = make_ball((9, 9, 9), (4, 4, 4), 2, magnitude=10.0)
        self.assertEqual(ball[4, 4, 4].item(), 10.0)
        self.assertEqual(ball[0, 0, 0].item(), 0.0)
        self.assertEqual(ball[4, 4, 6].item(), 10.0)
        self.assertEqual(ball[4, 4, 7].item(), 0.0)

    def test_make_ball_anisotropic_spacing(self):
        # depth voxels are half the lateral size, so the ball reaches twice as far in depth
        ball = make_ball((9, 9, 9), (4, 4, 4), 1.0, spacing=(0.5, 1.0, 1.0))
        self.assertEqual(ball[6, 4, 4].item(), 1.0)
        self.assertEqual(ball[7, 4, 4].item(), 0.0)
        self.assertEqual(ball[4, 5, 4].item(), 1.0)
        self.assertEqual(ball[4, 6, 4].item(), 0.0)
        self.assertEqual(ball.dtype, torch.float32)
        with self.assertRaises(ParameterError):
            make_ball((9, 9, 9), (4, 4, 4), 1.0, spacing=(0.0, 1.0, 1.0))


if __name__ == '__main__':
    unittest.main()
