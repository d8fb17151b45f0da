import unittest
import torch
import numpy as np
import sys
import os

# Ensure pareconlib is in the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

try:
    from pareconlib.exceptions import ParameterError, ShapeError
    from pareconlib.modalities.photoacoustic.data import BoundaryRecording
    from pareconlib.modalities.photoacoustic.time_reversal import TimeReversalReconstructor
    PARECONLIB_PAT_AVAILABLE = True
except ImportError as e:
    print(f"Could not import time reversal module for testing: {e}")
    PARECONLIB_PAT_AVAILABLE = False


class RecordingPropagator:
    """Mock wave solver: remembers its input and returns a fixed field."""
    def __init__(self, field):
        self.field = field
        self.calls = []

    def __call__(self, reversed_data, recording):
        self.calls.append((reversed_data, recording))
        return self.field


@unittest.skipIf(not PARECONLIB_PAT_AVAILABLE, "pareconlib.modalities.photoacoustic module not available")
class TestTimeReversalReconstructor(unittest.TestCase):
    def setUp(self):
        data = torch.arange(3 * 4 * 5, dtype=torch.float64).reshape(3, 4, 5)
        self.recording = BoundaryRecording(data, 1e-4, 1e-4, 2e-8, 1500.0)
        self.field = torch.linspace(-1.0, 1.0, 6 * 3 * 4, dtype=torch.float64).reshape(6, 3, 4)

    def test_time_reversed_input_and_scaling(self):
        propagator = RecordingPropagator(self.field)
        result = TimeReversalReconstructor(propagator).reconstruct(self.recording)

        self.assertEqual(len(propagator.calls), 1)
        reversed_data, passed_recording = propagator.calls[0]
        self.assertIs(passed_recording, self.recording)
        self.assertTrue(torch.equal(reversed_data, torch.flip(self.recording.data, dims=(2,))))

        self.assertTrue(torch.allclose(result.volume, 2.0 * self.field))
        self.assertAlmostEqual(result.spacing[0], 1500.0 * 2e-8)

    def test_positivity_and_dict_result(self):
        propagator = RecordingPropagator({'p_final': self.field.numpy()})
        result = TimeReversalReconstructor(propagator, compensation_factor=1.0, positivity=True).reconstruct(self.recording)
        self.assertTrue(bool((result.volume >= 0).all()))
        np.testing.assert_allclose(result.numpy(), np.clip(self.field.numpy(), 0, None))

    def test_bad_propagator_output(self):
        with self.assertRaises(ShapeError):
            TimeReversalReconstructor(RecordingPropagator(np.zeros((3, 4)))).reconstruct(self.recording)
        with self.assertRaises(ShapeError):
            TimeReversalReconstructor(RecordingPropagator(np.zeros((6, 4, 3)))).reconstruct(self.recording)

    def test_invalid_construction(self):
        with self.assertRaises(ParameterError):
            TimeReversalReconstructor("not a solver")
        with self.assertRaises(ParameterError):
            TimeReversalReconstructor(RecordingPropagator(self.field), compensation_factor=0.0)


if __name__ == '__main__':
    unittest.main()
