"""
Model artifact persistence.

The artifact is a joblib file holding the fitted pipeline together with the
input schema it was trained on.
"""

import logging
import os
from pathlib import Path
from typing import Any, List, Sequence, Tuple, Union

import joblib

from .config import MODEL_FORMAT_VERSION
from .errors import ModelLoadError, TrainingError

logger = logging.getLogger(__name__)


def save_model(model: Any, schema: Sequence[str], path: Union[str, Path]) -> Path:
    """
    Persist a fitted model and its input schema.

    The artifact is written to a temporary file and renamed into place, so a
    failed write never leaves a partial artifact at path.

    Args:
        model: Fitted pipeline
        schema: Ordered input column names
        path: Target artifact path

    Returns:
        Path of the written artifact

    Raises:
        TrainingError: If the artifact cannot be written
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + '.tmp')
    artifact = {
        'format_version': MODEL_FORMAT_VERSION,
        'schema': list(schema),
        'model': model,
    }

    try:
        joblib.dump(artifact, tmp_path)
        os.replace(tmp_path, path)
    except Exception as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise TrainingError(f"Cannot persist model to {path}: {e}") from e

    logger.info(f"Saved model to {path}")
    return path


def load_model(path: Union[str, Path]) -> Tuple[Any, List[str]]:
    """
    Load a model artifact written by save_model.

    Args:
        path: Artifact path

    Returns:
        Tuple of (model, schema)

    Raises:
        ModelLoadError: If the artifact is missing, corrupt or of another format
    """
    path = Path(path)
    if not path.exists():
        raise ModelLoadError(f"Model file not found: {path}")

    try:
        artifact = joblib.load(path)
    except Exception as e:
        raise ModelLoadError(f"Cannot load model from {path}: {e}") from e

    if not isinstance(artifact, dict) or 'model' not in artifact or 'schema' not in artifact:
        raise ModelLoadError(f"Not a packet classifier model: {path}")
    if artifact.get('format_version') != MODEL_FORMAT_VERSION:
        raise ModelLoadError(
            f"Unsupported model format {artifact.get('format_version')!r} in {path}"
        )

    logger.info(f"Loaded model from {path}")
    return artifact['model'], list(artifact['schema'])
