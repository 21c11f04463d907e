"""
Training orchestration.

Stages run in order and are not retried:
LoadRows -> SplitTrainTest -> BuildTransformPipeline -> Fit -> PersistModel
-> Evaluate -> ReportMetrics. Any failure aborts the run.
"""

import logging
from pathlib import Path
from typing import Any, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    f1_score,
    precision_score,
    recall_score,
    roc_auc_score,
)

from .config import (
    DEFAULT_FEATURE_FILE,
    DEFAULT_MODEL_FILE,
    DEFAULT_SEED,
    DEFAULT_TEST_FRACTION,
    FEATURE_COLUMNS,
    LABEL_COLUMN,
)
from .dataset import PacketDataset, load_feature_file, split_dataset
from .errors import EmptyDatasetError, TrainingError
from .model_store import save_model
from .pipeline import DEFAULT_STEPS, TransformStep, build_pipeline, label_column
from .types import EvaluationMetrics, TrainingResult

logger = logging.getLogger(__name__)


def fit_model(model: Any, train: pd.DataFrame, label: str = LABEL_COLUMN) -> Any:
    """
    Fit the pipeline on the training split.

    Raises:
        TrainingError: If the split holds a single class or fitting fails
    """
    y = train[label].astype(int)
    if y.nunique() < 2:
        raise TrainingError(
            f"Training split contains a single class ({len(train)} rows); "
            "need both TCP and non-TCP packets"
        )

    try:
        model.fit(train, y)
    except ValueError as e:
        raise TrainingError(f"Fitting failed: {e}") from e
    return model


def evaluate_model(model: Any, test: pd.DataFrame, label: str = LABEL_COLUMN) -> EvaluationMetrics:
    """
    Score the held-out split.

    Args:
        model: Fitted pipeline
        test: Held-out rows
        label: Label column name

    Returns:
        EvaluationMetrics with every value in [0, 1]
    """
    if len(test) == 0:
        raise EmptyDatasetError("Cannot evaluate on an empty test split")

    y_true = test[label].astype(int).to_numpy()
    y_pred = np.asarray(model.predict(test)).astype(int)

    auc = None
    if len(np.unique(y_true)) == 2:
        positive_index = list(model.classes_).index(1)
        auc = float(roc_auc_score(y_true, model.predict_proba(test)[:, positive_index]))

    return EvaluationMetrics(
        accuracy=float(accuracy_score(y_true, y_pred)),
        f1_score=float(f1_score(y_true, y_pred, pos_label=1, zero_division=0)),
        positive_recall=float(recall_score(y_true, y_pred, pos_label=1, zero_division=0)),
        negative_recall=float(recall_score(y_true, y_pred, pos_label=0, zero_division=0)),
        positive_precision=float(precision_score(y_true, y_pred, pos_label=1, zero_division=0)),
        negative_precision=float(precision_score(y_true, y_pred, pos_label=0, zero_division=0)),
        auc=auc,
        test_size=len(test),
    )


def train_from_feature_file(feature_path: Union[str, Path] = DEFAULT_FEATURE_FILE,
                            model_path: Union[str, Path] = DEFAULT_MODEL_FILE,
                            seed: int = DEFAULT_SEED,
                            test_fraction: float = DEFAULT_TEST_FRACTION,
                            steps: Sequence[TransformStep] = DEFAULT_STEPS) -> TrainingResult:
    """
    Train, persist and evaluate a classifier from an existing feature file.

    Args:
        feature_path: Feature file to load rows from
        model_path: Where to persist the fitted model
        seed: Seed for the split and the classifier
        test_fraction: Held-out fraction
        steps: Transform steps

    Returns:
        TrainingResult with held-out metrics
    """
    logger.info(f"Loading rows from {feature_path}")
    frame = load_feature_file(feature_path)

    train, test = split_dataset(frame, test_fraction=test_fraction, seed=seed)

    model = build_pipeline(steps, seed=seed)
    label = label_column(steps)

    logger.info(f"Fitting classifier on {len(train)} rows")
    fit_model(model, train, label)

    save_model(model, FEATURE_COLUMNS, model_path)

    logger.info(f"Evaluating on {len(test)} held-out rows")
    metrics = evaluate_model(model, test, label)
    logger.info(f"Accuracy {metrics.accuracy:.4f}, F1 {metrics.f1_score:.4f}")

    return TrainingResult(
        metrics=metrics,
        model_path=str(model_path),
        feature_path=str(feature_path),
        train_size=len(train),
        test_size=len(test),
    )


def train_model(dataset: PacketDataset,
                feature_path: Union[str, Path] = DEFAULT_FEATURE_FILE,
                model_path: Union[str, Path] = DEFAULT_MODEL_FILE,
                seed: int = DEFAULT_SEED,
                test_fraction: float = DEFAULT_TEST_FRACTION,
                steps: Sequence[TransformStep] = DEFAULT_STEPS) -> TrainingResult:
    """
    Write the feature file for a dataset, then train from it.

    Raises:
        EmptyDatasetError: If the dataset holds no packets
    """
    if len(dataset) == 0:
        raise EmptyDatasetError("No packets captured; nothing to train on")

    dataset.write_feature_file(feature_path)
    return train_from_feature_file(
        feature_path,
        model_path=model_path,
        seed=seed,
        test_fraction=test_fraction,
        steps=steps,
    )
