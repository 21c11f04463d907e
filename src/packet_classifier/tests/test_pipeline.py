"""
Unit tests for the transform step list and pipeline composition.
"""

import unittest
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import numpy as np
import pandas as pd
from sklearn.linear_model import LogisticRegression
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from packet_classifier.dataset import PacketDataset
from packet_classifier.pipeline import (
    DEFAULT_STEPS,
    FEATURES_OUTPUT,
    INPUT_SCHEMA,
    LABEL_OUTPUT,
    ColumnType,
    StepKind,
    TransformStep,
    apply_schema,
    apply_step,
    build_pipeline,
    label_column,
)
from packet_classifier.tests.test_dataset import make_packets


def to_dense(matrix):
    return matrix.toarray() if hasattr(matrix, 'toarray') else np.asarray(matrix)


class TestSchemaPropagation(unittest.TestCase):
    """Test step-by-step schema propagation."""

    def test_default_steps_shape(self):
        schema = apply_schema(DEFAULT_STEPS)
        self.assertEqual(schema[LABEL_OUTPUT], ColumnType.BOOL)
        self.assertEqual(schema['payload_encoded'], ColumnType.VECTOR)
        self.assertEqual(schema[FEATURES_OUTPUT], ColumnType.VECTOR)
        for column in ('src_port', 'dst_port', 'header_size'):
            self.assertEqual(schema[column], ColumnType.NUMERIC)

    def test_step_order(self):
        self.assertEqual(
            [step.kind for step in DEFAULT_STEPS],
            [StepKind.COPY, StepKind.ONE_HOT, StepKind.NORMALIZE,
             StepKind.NORMALIZE, StepKind.NORMALIZE, StepKind.CONCATENATE],
        )
        self.assertEqual(
            DEFAULT_STEPS[-1].inputs,
            ('payload_encoded', 'src_port', 'dst_port', 'header_size'),
        )

    def test_apply_step_does_not_mutate(self):
        schema = dict(INPUT_SCHEMA)
        apply_step(DEFAULT_STEPS[1], schema)
        self.assertEqual(schema, INPUT_SCHEMA)

    def test_missing_input(self):
        step = TransformStep(StepKind.NORMALIZE, 'ttl', ('ttl',))
        with self.assertRaises(ValueError):
            apply_step(step, INPUT_SCHEMA)

    def test_one_hot_requires_text(self):
        step = TransformStep(StepKind.ONE_HOT, 'ports', ('src_port',))
        with self.assertRaises(ValueError):
            apply_step(step, INPUT_SCHEMA)

    def test_normalize_rejects_text(self):
        step = TransformStep(StepKind.NORMALIZE, 'payload', ('payload',))
        with self.assertRaises(ValueError):
            apply_step(step, INPUT_SCHEMA)

    def test_concatenate_before_encoding_fails(self):
        steps = [TransformStep(StepKind.CONCATENATE, FEATURES_OUTPUT, ('payload_encoded',))]
        with self.assertRaises(ValueError):
            apply_schema(steps)

    def test_label_column(self):
        self.assertEqual(label_column(DEFAULT_STEPS), 'is_tcp')
        with self.assertRaises(ValueError):
            label_column(DEFAULT_STEPS[1:])


class TestBuildPipeline(unittest.TestCase):
    """Test composition into a scikit-learn Pipeline."""

    def setUp(self):
        self.frame = PacketDataset(make_packets(40)).to_frame()
        self.y = self.frame['is_tcp'].astype(int)

    def test_structure(self):
        model = build_pipeline()
        features = model.named_steps['features']
        names = [name for name, _, _ in features.transformers]
        self.assertEqual(names, ['payload_encoded', 'src_port', 'dst_port', 'header_size'])
        self.assertIsInstance(features.transformers[0][1], OneHotEncoder)
        for _, transformer, _ in features.transformers[1:]:
            self.assertIsInstance(transformer, StandardScaler)
        self.assertIsInstance(model.named_steps['classifier'], LogisticRegression)

    def test_requires_label_and_features(self):
        with self.assertRaises(ValueError):
            build_pipeline(DEFAULT_STEPS[1:])
        with self.assertRaises(ValueError):
            build_pipeline(DEFAULT_STEPS[:-1])

    def test_scaler_statistics_from_fit_data(self):
        train = self.frame.iloc[:30]
        model = build_pipeline().fit(train, self.y.iloc[:30])
        scaler = model.named_steps['features'].named_transformers_['src_port']
        self.assertAlmostEqual(scaler.mean_[0], train['src_port'].mean())

    def test_feature_width(self):
        """One-hot width equals the training vocabulary plus three scalars."""
        model = build_pipeline().fit(self.frame, self.y)
        width = to_dense(model.named_steps['features'].transform(self.frame)).shape[1]
        self.assertEqual(width, self.frame['payload'].nunique() + 3)

    def test_unseen_token_maps_to_zero_vector(self):
        model = build_pipeline().fit(self.frame, self.y)
        encoder = model.named_steps['features'].named_transformers_['payload_encoded']
        encoded = to_dense(encoder.transform(pd.DataFrame({'payload': ['FFFFFFFF']})))
        self.assertEqual(encoded.sum(), 0)

        row = self.frame.iloc[:1].copy()
        row['payload'] = 'FFFFFFFF'
        self.assertEqual(len(model.predict(row)), 1)


if __name__ == '__main__':
    unittest.main()
