"""
Tests for the command-line interface.
"""

import contextlib
import io
import tempfile
import unittest
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from packet_classifier.cli import main
from packet_classifier.tests.frames import FrameFixtures


class TestCli(unittest.TestCase):
    """Test mode dispatch and exit codes."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self.tmp.name)
        self.trace = FrameFixtures.write_pcap(
            self.tmp_path / 'a.pcap', FrameFixtures.scenario_a_frames()
        )
        self.feature_path = self.tmp_path / 'feature.csv'
        self.model_path = self.tmp_path / 'model.mdl'

    def tearDown(self):
        self.tmp.cleanup()

    def run_cli(self, *args):
        argv = list(args) + [
            '--feature-file', str(self.feature_path),
            '--model', str(self.model_path),
        ]
        stdout, stderr = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            code = main(argv)
        return code, stdout.getvalue(), stderr.getvalue()

    def test_train_then_predict(self):
        code, out, _ = self.run_cli(str(self.trace), 'train')
        self.assertEqual(code, 0)
        self.assertIn('Accuracy: ', out)
        self.assertTrue(self.model_path.exists())

        code, out, _ = self.run_cli(str(self.trace), 'predict')
        self.assertEqual(code, 0)
        self.assertIn('Efficacy: ', out)

    def test_missing_trace(self):
        """Missing trace aborts with a diagnostic and no artifacts."""
        code, _, err = self.run_cli(str(self.tmp_path / 'missing.pcap'), 'train')
        self.assertEqual(code, 1)
        self.assertIn('Error: ', err)
        self.assertFalse(self.feature_path.exists())
        self.assertFalse(self.model_path.exists())

    def test_unknown_mode_is_noop(self):
        code, _, _ = self.run_cli(str(self.trace), 'evaluate')
        self.assertEqual(code, 0)
        self.assertFalse(self.feature_path.exists())
        self.assertFalse(self.model_path.exists())

    def test_predict_without_model(self):
        code, _, err = self.run_cli(str(self.trace), 'predict')
        self.assertEqual(code, 1)
        self.assertIn('Model file not found', err)

    def test_empty_trace(self):
        """A trace with no IPv4 frames is fatal in train mode."""
        trace = FrameFixtures.write_pcap(self.tmp_path / 'arp.pcap', [FrameFixtures.arp_frame()])
        code, _, err = self.run_cli(str(trace), 'train')
        self.assertEqual(code, 1)
        self.assertIn('No packets captured', err)
        self.assertFalse(self.model_path.exists())


if __name__ == '__main__':
    unittest.main()
