"""
Dataset building: packet accumulation, feature file I/O and train/test split.
"""

import csv
import logging
import math
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple, Union

import pandas as pd
from sklearn.model_selection import train_test_split

from .config import (
    DEFAULT_SEED,
    DEFAULT_TEST_FRACTION,
    FEATURE_COLUMNS,
    FEATURE_FILE_DELIMITER,
    LABEL_COLUMN,
)
from .errors import EmptyDatasetError, TrainingError
from .features import encode_packet, packets_to_frame
from .types import ParsedPacket

logger = logging.getLogger(__name__)

NUMERIC_COLUMNS = ['src_port', 'dst_port', 'header_size', 'total_packet_length']
_BOOL_VALUES = {'True': True, 'False': False}


def _format_number(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class PacketDataset:
    """
    Ordered, in-memory sequence of parsed packets.

    Packets are kept in arrival order. No deduplication is performed.
    """

    def __init__(self, packets: Iterable[ParsedPacket] = ()):
        self._packets: List[ParsedPacket] = list(packets)

    def append(self, packet: ParsedPacket):
        """Add a packet at the end of the sequence."""
        self._packets.append(packet)

    def extend(self, packets: Iterable[ParsedPacket]):
        for packet in packets:
            self.append(packet)

    def __len__(self) -> int:
        return len(self._packets)

    def __iter__(self) -> Iterator[ParsedPacket]:
        return iter(self._packets)

    def __getitem__(self, index: int) -> ParsedPacket:
        return self._packets[index]

    @property
    def packets(self) -> Tuple[ParsedPacket, ...]:
        """Immutable snapshot of the accumulated packets."""
        return tuple(self._packets)

    @property
    def tcp_count(self) -> int:
        return sum(1 for p in self._packets if p.is_tcp)

    def to_frame(self) -> pd.DataFrame:
        """Encoded packets as a feature DataFrame."""
        return packets_to_frame(self._packets)

    def write_feature_file(self, path: Union[str, Path]) -> Path:
        """
        Write every packet as one tab-delimited line, in accumulation order.

        Any existing file at path is overwritten. The file is closed before
        this method returns, on success or failure.

        Args:
            path: Output feature file path

        Returns:
            Path of the written file
        """
        path = Path(path)
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(
                f,
                delimiter=FEATURE_FILE_DELIMITER,
                lineterminator='\n',
                quoting=csv.QUOTE_NONE,
            )
            for packet in self._packets:
                record = encode_packet(packet)
                writer.writerow([
                    str(record.is_tcp),
                    _format_number(record.src_port),
                    _format_number(record.dst_port),
                    _format_number(record.header_size),
                    _format_number(record.total_packet_length),
                    record.payload,
                ])

        logger.info(f"Wrote {len(self._packets)} rows to feature file {path}")
        return path


def load_feature_file(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a feature file written by PacketDataset.write_feature_file.

    Args:
        path: Feature file path

    Returns:
        DataFrame with FEATURE_COLUMNS, is_tcp as bool and numeric columns as float

    Raises:
        EmptyDatasetError: If the file holds no rows
        TrainingError: If the file is missing or a row is malformed
    """
    path = Path(path)
    if not path.exists():
        raise TrainingError(f"Feature file not found: {path}")

    try:
        frame = pd.read_csv(
            path,
            sep=FEATURE_FILE_DELIMITER,
            header=None,
            dtype=str,
            keep_default_na=False,
            quoting=csv.QUOTE_NONE,
            encoding='utf-8',
        )
    except pd.errors.EmptyDataError:
        raise EmptyDatasetError(f"Feature file is empty: {path}")
    except pd.errors.ParserError as e:
        raise TrainingError(f"Malformed feature file {path}: {e}") from e

    if frame.shape[1] != len(FEATURE_COLUMNS):
        raise TrainingError(
            f"Malformed feature file {path}: expected {len(FEATURE_COLUMNS)} columns, "
            f"found {frame.shape[1]}"
        )
    frame.columns = FEATURE_COLUMNS

    if frame.isna().any().any():
        raise TrainingError(f"Malformed feature file {path}: missing fields")

    labels = frame[LABEL_COLUMN].map(_BOOL_VALUES)
    if labels.isna().any():
        bad = frame.loc[labels.isna(), LABEL_COLUMN].iloc[0]
        raise TrainingError(f"Malformed feature file {path}: invalid label {bad!r}")
    frame[LABEL_COLUMN] = labels.astype(bool)

    for column in NUMERIC_COLUMNS:
        try:
            frame[column] = pd.to_numeric(frame[column]).astype(float)
        except ValueError as e:
            raise TrainingError(f"Malformed feature file {path}: column {column}: {e}") from e

    if frame.empty:
        raise EmptyDatasetError(f"Feature file has no rows: {path}")

    logger.debug(f"Loaded {len(frame)} rows from {path}")
    return frame


def split_dataset(frame: pd.DataFrame,
                  test_fraction: float = DEFAULT_TEST_FRACTION,
                  seed: int = DEFAULT_SEED) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Deterministic holdout split.

    Identical input order, size, fraction and seed always yield the same
    partitions.

    Args:
        frame: Feature DataFrame
        test_fraction: Held-out fraction, strictly between 0 and 1
        seed: Random seed

    Returns:
        Tuple of (train_frame, test_frame)
    """
    if not 0.0 < test_fraction < 1.0:
        raise ValueError(f"test_fraction must be between 0 and 1, got {test_fraction}")
    if len(frame) == 0:
        raise EmptyDatasetError("Cannot split an empty dataset")
    if len(frame) < 2:
        raise TrainingError(f"Need at least 2 rows to split, got {len(frame)}")

    n_test = math.ceil(len(frame) * test_fraction)
    if n_test >= len(frame):
        raise TrainingError(
            f"test_fraction {test_fraction} leaves no training rows out of {len(frame)}"
        )

    train, test = train_test_split(
        frame,
        test_size=test_fraction,
        random_state=seed,
        shuffle=True,
    )
    logger.info(f"Split {len(frame)} rows into {len(train)} train / {len(test)} test")
    return train, test
