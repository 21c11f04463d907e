"""
Exception types raised by the packet classifier.

Frame-decode anomalies are not represented here: malformed or unsupported
frames are dropped by the decoder, never raised.
"""


class PacketClassifierError(Exception):
    """Base class for fatal pipeline errors."""


class CaptureOpenError(PacketClassifierError):
    """The trace file is missing, unreadable or not a capture file."""


class EmptyDatasetError(PacketClassifierError):
    """No packets are available to train on or to score."""


class TrainingError(PacketClassifierError):
    """The feature file or the training/evaluation stage is ill-formed."""


class ModelLoadError(PacketClassifierError):
    """The persisted model artifact is missing, corrupt or incompatible."""
