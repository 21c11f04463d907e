"""
Tests for the prediction orchestrator.
"""

import tempfile
import unittest
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from packet_classifier.config import FEATURE_COLUMNS
from packet_classifier.dataset import PacketDataset
from packet_classifier.decoder import read_trace
from packet_classifier.errors import EmptyDatasetError, ModelLoadError
from packet_classifier.features import encode_packet
from packet_classifier.model_store import load_model, save_model
from packet_classifier.prediction import predict_record, predict_trace
from packet_classifier.training import train_model
from packet_classifier.types import ParsedPacket, PredictionReport
from packet_classifier.tests.frames import FrameFixtures


class TestPredictTrace(unittest.TestCase):
    """Train on scenario A, then re-score it."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self.tmp.name)
        trace = FrameFixtures.write_pcap(self.tmp_path / 'a.pcap', FrameFixtures.scenario_a_frames())
        self.dataset = read_trace(trace)
        self.model_path = self.tmp_path / 'model.mdl'
        train_model(self.dataset, self.tmp_path / 'feature.csv', self.model_path)

    def tearDown(self):
        self.tmp.cleanup()

    def test_scenario_c(self):
        """Accuracy in [0, 1] and mismatches == total - correct."""
        report = predict_trace(self.dataset, self.model_path)
        self.assertEqual(report.total, 10)
        self.assertGreaterEqual(report.accuracy, 0.0)
        self.assertLessEqual(report.accuracy, 1.0)
        self.assertEqual(len(report.mismatches), 10 - report.correct)
        self.assertAlmostEqual(report.accuracy, report.correct / 10)

    def test_mismatches_disagree(self):
        report = predict_trace(self.dataset, self.model_path)
        for mismatch in report.mismatches:
            self.assertNotEqual(mismatch.predicted, mismatch.actual)

    def test_predict_record(self):
        model, _ = load_model(self.model_path)
        prediction = predict_record(model, encode_packet(self.dataset[0]))
        self.assertIsInstance(prediction.label, bool)
        self.assertGreaterEqual(prediction.probability, 0.0)
        self.assertLessEqual(prediction.probability, 1.0)
        self.assertEqual(prediction.label, prediction.score > 0)

    def test_unseen_payload_token(self):
        """Packets with a header never seen in training are still scored."""
        frame = FrameFixtures.tcp_frame(40005, 80, src=bytes.fromhex('0a0b0c0d0e0f'))
        other = FrameFixtures.write_pcap(self.tmp_path / 'other.pcap', [frame])
        report = predict_trace(read_trace(other), self.model_path)
        self.assertEqual(report.total, 1)

    def test_empty_dataset(self):
        with self.assertRaises(EmptyDatasetError):
            predict_trace(PacketDataset(), self.model_path)

    def test_missing_model(self):
        with self.assertRaises(ModelLoadError):
            predict_trace(self.dataset, self.tmp_path / 'missing.mdl')

    def test_corrupt_model(self):
        path = self.tmp_path / 'corrupt.mdl'
        path.write_bytes(b'not a model')
        with self.assertRaises(ModelLoadError):
            predict_trace(self.dataset, path)

    def test_schema_mismatch(self):
        model, _ = load_model(self.model_path)
        path = save_model(model, FEATURE_COLUMNS[:-1], self.tmp_path / 'other.mdl')
        with self.assertRaises(ModelLoadError):
            predict_trace(self.dataset, path)


class TestPredictionReport(unittest.TestCase):
    """Test report counting."""

    def test_counts_each_packet_once(self):
        report = PredictionReport()
        report.record(True, True)
        report.record(False, True)
        report.record(False, False)
        report.record(True, False)
        self.assertEqual(report.total, 4)
        self.assertEqual(report.correct, 2)
        self.assertEqual(report.accuracy, 0.5)

    def test_empty_report(self):
        self.assertEqual(PredictionReport().accuracy, 0.0)

    def test_format(self):
        report = PredictionReport()
        report.record(False, True)
        report.record(True, True)
        self.assertEqual(report.format_report(), "Prediction: UDP - Actual: TCP\nEfficacy: 0.5")


if __name__ == '__main__':
    unittest.main()
