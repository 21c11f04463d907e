"""
Prediction orchestration: re-score a whole trace against a persisted model.
"""

import logging
from pathlib import Path
from typing import Any, List, Union

import numpy as np
import pandas as pd

from .config import DEFAULT_MODEL_FILE, FEATURE_COLUMNS
from .dataset import PacketDataset
from .errors import EmptyDatasetError, ModelLoadError
from .features import records_to_frame
from .model_store import load_model
from .types import PacketData, Prediction, PredictionReport, protocol_name

logger = logging.getLogger(__name__)


def score_frame(model: Any, frame: pd.DataFrame) -> List[Prediction]:
    """
    Score every row of a feature DataFrame.

    Args:
        model: Fitted pipeline
        frame: Rows in feature column order

    Returns:
        One Prediction per row, in row order
    """
    positive_index = list(model.classes_).index(1)
    labels = np.asarray(model.predict(frame)).astype(int)
    probabilities = model.predict_proba(frame)[:, positive_index]
    scores = model.decision_function(frame)

    return [
        Prediction(label=bool(label), probability=float(prob), score=float(score))
        for label, prob, score in zip(labels, probabilities, scores)
    ]


def predict_record(model: Any, record: PacketData) -> Prediction:
    """Score a single encoded packet."""
    return score_frame(model, records_to_frame([record]))[0]


def predict_trace(dataset: PacketDataset,
                  model_path: Union[str, Path] = DEFAULT_MODEL_FILE) -> PredictionReport:
    """
    Score every packet of the dataset and compare with its own label.

    Each packet is counted exactly once in the report total.

    Args:
        dataset: Packets of the current trace
        model_path: Persisted model artifact

    Returns:
        PredictionReport with counts and mismatches

    Raises:
        EmptyDatasetError: If the dataset holds no packets
        ModelLoadError: If the model cannot be loaded or its schema differs
    """
    if len(dataset) == 0:
        raise EmptyDatasetError("No packets captured; nothing to score")

    model, schema = load_model(model_path)
    if schema != FEATURE_COLUMNS:
        raise ModelLoadError(f"Model schema {schema} does not match {FEATURE_COLUMNS}")

    predictions = score_frame(model, dataset.to_frame())

    report = PredictionReport()
    for packet, prediction in zip(dataset, predictions):
        report.record(prediction.label, packet.is_tcp)
        if prediction.label != packet.is_tcp:
            logger.debug(
                f"Mismatch: predicted {protocol_name(prediction.label)}, "
                f"actual {protocol_name(packet.is_tcp)} (p={prediction.probability:.3f})"
            )

    logger.info(f"Scored {report.total} packets, {report.correct} correct")
    return report
