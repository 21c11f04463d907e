"""
Feature transform pipeline.

The transform sequence is data: an ordered list of TransformStep entries,
each mapping a feature schema to a new feature schema. build_pipeline()
composes the list into a scikit-learn Pipeline ending in a logistic
regression classifier. The same fitted pipeline is used at train and
predict time.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from sklearn.compose import ColumnTransformer
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline, make_pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from .config import CLASSIFIER_MAX_ITER, DEFAULT_SEED

logger = logging.getLogger(__name__)

LABEL_OUTPUT = 'Label'
FEATURES_OUTPUT = 'Features'


class StepKind(Enum):
    """Transform step kinds."""
    COPY = "copy"
    ONE_HOT = "one_hot"
    NORMALIZE = "normalize_mean_variance"
    CONCATENATE = "concatenate"


class ColumnType(Enum):
    """Column types tracked through schema propagation."""
    BOOL = "bool"
    NUMERIC = "numeric"
    TEXT = "text"
    VECTOR = "vector"


@dataclass(frozen=True)
class TransformStep:
    """One named transform: reads inputs, writes output."""
    kind: StepKind
    output: str
    inputs: Tuple[str, ...]


Schema = Dict[str, ColumnType]

INPUT_SCHEMA: Schema = {
    'is_tcp': ColumnType.BOOL,
    'src_port': ColumnType.NUMERIC,
    'dst_port': ColumnType.NUMERIC,
    'header_size': ColumnType.NUMERIC,
    'total_packet_length': ColumnType.NUMERIC,
    'payload': ColumnType.TEXT,
}

DEFAULT_STEPS: List[TransformStep] = [
    TransformStep(StepKind.COPY, LABEL_OUTPUT, ('is_tcp',)),
    TransformStep(StepKind.ONE_HOT, 'payload_encoded', ('payload',)),
    TransformStep(StepKind.NORMALIZE, 'src_port', ('src_port',)),
    TransformStep(StepKind.NORMALIZE, 'dst_port', ('dst_port',)),
    TransformStep(StepKind.NORMALIZE, 'header_size', ('header_size',)),
    TransformStep(
        StepKind.CONCATENATE,
        FEATURES_OUTPUT,
        ('payload_encoded', 'src_port', 'dst_port', 'header_size'),
    ),
]

_ACCEPTED_INPUTS = {
    StepKind.COPY: set(ColumnType),
    StepKind.ONE_HOT: {ColumnType.TEXT},
    StepKind.NORMALIZE: {ColumnType.NUMERIC},
    StepKind.CONCATENATE: {ColumnType.NUMERIC, ColumnType.VECTOR},
}


def apply_step(step: TransformStep, schema: Schema) -> Schema:
    """
    Compute the schema produced by a single step.

    Args:
        step: Transform step
        schema: Input schema (not modified)

    Returns:
        New schema including the step's output column

    Raises:
        ValueError: If an input column is missing or has an unsupported type
    """
    if not step.inputs:
        raise ValueError(f"Step '{step.output}' has no inputs")
    if step.kind != StepKind.CONCATENATE and len(step.inputs) != 1:
        raise ValueError(f"Step '{step.output}' ({step.kind.value}) takes exactly one input")

    for name in step.inputs:
        if name not in schema:
            raise ValueError(f"Step '{step.output}' reads missing column '{name}'")
        if schema[name] not in _ACCEPTED_INPUTS[step.kind]:
            raise ValueError(
                f"Step '{step.output}' ({step.kind.value}) cannot read "
                f"{schema[name].value} column '{name}'"
            )

    result = dict(schema)
    if step.kind == StepKind.COPY:
        result[step.output] = schema[step.inputs[0]]
    elif step.kind == StepKind.ONE_HOT:
        result[step.output] = ColumnType.VECTOR
    elif step.kind == StepKind.NORMALIZE:
        result[step.output] = ColumnType.NUMERIC
    else:
        result[step.output] = ColumnType.VECTOR
    return result


def apply_schema(steps: Sequence[TransformStep], schema: Schema = INPUT_SCHEMA) -> Schema:
    """Propagate a schema through every step in order."""
    for step in steps:
        schema = apply_step(step, schema)
    return schema


def label_column(steps: Sequence[TransformStep]) -> str:
    """Return the raw column copied into the label slot."""
    for step in steps:
        if step.kind == StepKind.COPY and step.output == LABEL_OUTPUT:
            return step.inputs[0]
    raise ValueError(f"No step copies a column into '{LABEL_OUTPUT}'")


def build_pipeline(steps: Sequence[TransformStep] = DEFAULT_STEPS,
                   seed: int = DEFAULT_SEED) -> Pipeline:
    """
    Compose transform steps and a logistic regression into one Pipeline.

    Each column feeding the final concatenate step becomes one
    ColumnTransformer entry, in concatenate order. Normalization statistics
    and the one-hot vocabulary are learned when the pipeline is fitted, so
    only the training split contributes to them. Unseen payload tokens
    encode to an all-zero vector.

    Args:
        steps: Ordered transform steps
        seed: Random seed for the classifier

    Returns:
        Unfitted scikit-learn Pipeline

    Raises:
        ValueError: If the steps are inconsistent
    """
    final_schema = apply_schema(steps)
    if final_schema.get(LABEL_OUTPUT) != ColumnType.BOOL:
        raise ValueError(f"Pipeline must copy a boolean column into '{LABEL_OUTPUT}'")
    if final_schema.get(FEATURES_OUTPUT) != ColumnType.VECTOR:
        raise ValueError(f"Pipeline must concatenate into '{FEATURES_OUTPUT}'")

    # column name -> (transformer chain, raw source column)
    sources: Dict[str, Tuple[list, str]] = {name: ([], name) for name in INPUT_SCHEMA}
    feature_inputs: Tuple[str, ...] = ()

    for step in steps:
        chain, raw = sources.get(step.inputs[0], ([], step.inputs[0]))
        if step.kind == StepKind.COPY:
            sources[step.output] = (list(chain), raw)
        elif step.kind == StepKind.ONE_HOT:
            sources[step.output] = (chain + [OneHotEncoder(handle_unknown='ignore')], raw)
        elif step.kind == StepKind.NORMALIZE:
            sources[step.output] = (chain + [StandardScaler()], raw)
        elif step.output == FEATURES_OUTPUT:
            feature_inputs = step.inputs

    transformers = []
    for name in feature_inputs:
        chain, raw = sources[name]
        if not chain:
            transformer = 'passthrough'
        elif len(chain) == 1:
            transformer = chain[0]
        else:
            transformer = make_pipeline(*chain)
        transformers.append((name, transformer, [raw]))

    logger.debug(f"Feature transformers: {[t[0] for t in transformers]}")

    return Pipeline([
        ('features', ColumnTransformer(transformers)),
        ('classifier', LogisticRegression(max_iter=CLASSIFIER_MAX_ITER, random_state=seed)),
    ])
