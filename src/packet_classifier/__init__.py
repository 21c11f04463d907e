"""
Packet Protocol Classifier

Decodes Ethernet/IPv4 frames from a capture file into per-packet feature
records and trains or applies a binary TCP-vs-UDP classifier on them.
"""

from .decoder import decode_frame, read_trace, TraceReader
from .features import extract_packet, encode_packet, link_header_token
from .dataset import PacketDataset, load_feature_file, split_dataset
from .pipeline import DEFAULT_STEPS, TransformStep, StepKind, build_pipeline
from .training import train_model, train_from_feature_file, evaluate_model
from .prediction import predict_trace, predict_record
from .model_store import save_model, load_model
from .errors import (
    PacketClassifierError,
    CaptureOpenError,
    EmptyDatasetError,
    TrainingError,
    ModelLoadError
)
from .types import (
    ParsedPacket,
    PacketData,
    DecodedFrame,
    TransportKind,
    EvaluationMetrics,
    PredictionReport,
    Prediction
)

__version__ = "0.1.0"
__all__ = [
    'decode_frame',
    'read_trace',
    'TraceReader',
    'extract_packet',
    'encode_packet',
    'link_header_token',
    'PacketDataset',
    'load_feature_file',
    'split_dataset',
    'DEFAULT_STEPS',
    'TransformStep',
    'StepKind',
    'build_pipeline',
    'train_model',
    'train_from_feature_file',
    'evaluate_model',
    'predict_trace',
    'predict_record',
    'save_model',
    'load_model',
    'PacketClassifierError',
    'CaptureOpenError',
    'EmptyDatasetError',
    'TrainingError',
    'ModelLoadError',
    'ParsedPacket',
    'PacketData',
    'DecodedFrame',
    'TransportKind',
    'EvaluationMetrics',
    'PredictionReport',
    'Prediction',
]
