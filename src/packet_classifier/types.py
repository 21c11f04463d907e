"""
Type definitions for the packet protocol classifier.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class TransportKind(Enum):
    """Transport-layer protocol families seen inside IPv4."""
    TCP = "tcp"
    UDP = "udp"
    OTHER = "other"


@dataclass(frozen=True)
class TcpPorts:
    """TCP segment header fields used as features."""
    src_port: int
    dst_port: int

    @property
    def kind(self) -> TransportKind:
        return TransportKind.TCP


@dataclass(frozen=True)
class UdpPorts:
    """UDP datagram header fields used as features."""
    src_port: int
    dst_port: int

    @property
    def kind(self) -> TransportKind:
        return TransportKind.UDP


@dataclass(frozen=True)
class OtherTransport:
    """Any IP protocol other than TCP/UDP. Carries no ports."""
    protocol: int  # IP protocol number

    @property
    def kind(self) -> TransportKind:
        return TransportKind.OTHER


Transport = Union[TcpPorts, UdpPorts, OtherTransport]


@dataclass(frozen=True)
class DecodedFrame:
    """An accepted Ethernet/IPv4 frame."""
    ip_header_size: int  # bytes
    total_length: int  # IPv4 total length field
    ip_protocol: int
    transport: Transport
    link_header: bytes  # raw Ethernet header

    @property
    def ports(self):
        """Return (src_port, dst_port), (0, 0) for non TCP/UDP."""
        if isinstance(self.transport, (TcpPorts, UdpPorts)):
            return self.transport.src_port, self.transport.dst_port
        return 0, 0


@dataclass(frozen=True)
class ParsedPacket:
    """Protocol metadata extracted from one frame."""
    is_tcp: bool
    src_port: int
    dst_port: int
    header_size: float
    total_packet_size: float
    payload: str  # hex token of the link-layer header


@dataclass(frozen=True)
class PacketData:
    """Flat feature record consumed by the classifier."""
    is_tcp: bool
    src_port: float
    dst_port: float
    header_size: float
    total_packet_length: float
    payload: str


@dataclass(frozen=True)
class Prediction:
    """Scoring result for a single record."""
    label: bool  # True = TCP
    probability: float  # P(TCP)
    score: float  # raw decision function value


@dataclass(frozen=True)
class Mismatch:
    """A packet whose predicted label disagrees with its own label."""
    predicted: bool
    actual: bool


def protocol_name(is_tcp: bool) -> str:
    return "TCP" if is_tcp else "UDP"


@dataclass
class EvaluationMetrics:
    """Binary classification metrics on the held-out split."""
    accuracy: float
    f1_score: float
    positive_recall: float
    negative_recall: float
    positive_precision: float
    negative_precision: float
    auc: Optional[float] = None  # undefined when the test split has one class
    test_size: int = 0

    def format_report(self) -> str:
        lines = [
            f"Accuracy: {self.accuracy:.2%}",
            f"F1Score: {self.f1_score:.2%}",
            f"Positive Recall: {self.positive_recall:.2f}",
            f"Negative Recall: {self.negative_recall:.2f}",
            f"Positive Precision: {self.positive_precision:.2f}",
            f"Negative Precision: {self.negative_precision:.2f}",
        ]
        if self.auc is not None:
            lines.append(f"AUC: {self.auc:.2f}")
        return "\n".join(lines)


@dataclass
class TrainingResult:
    """Outcome of a successful training run."""
    metrics: EvaluationMetrics
    model_path: str
    feature_path: str
    train_size: int
    test_size: int


@dataclass
class PredictionReport:
    """Outcome of re-scoring a trace against a persisted model."""
    correct: int = 0
    total: int = 0
    mismatches: List[Mismatch] = field(default_factory=list)

    def record(self, predicted: bool, actual: bool):
        """Count one scored packet."""
        self.total += 1
        if predicted == actual:
            self.correct += 1
        else:
            self.mismatches.append(Mismatch(predicted=predicted, actual=actual))

    @property
    def accuracy(self) -> float:
        """Fraction of correctly predicted packets, 0.0 when nothing was scored."""
        if self.total == 0:
            return 0.0
        return self.correct / self.total

    def format_report(self) -> str:
        lines = [
            f"Prediction: {protocol_name(m.predicted)} - Actual: {protocol_name(m.actual)}"
            for m in self.mismatches
        ]
        lines.append(f"Efficacy: {self.accuracy}")
        return "\n".join(lines)
