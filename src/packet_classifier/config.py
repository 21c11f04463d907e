"""
Configuration constants for the packet protocol classifier.

Centralizes seeds, split fractions, file names and column names.
"""

from typing import List

# Reproducibility
DEFAULT_SEED: int = 2019
DEFAULT_TEST_FRACTION: float = 0.2

# Default artifact locations (relative to the working directory)
DEFAULT_FEATURE_FILE: str = 'feature.csv'
DEFAULT_MODEL_FILE: str = 'model.mdl'

# Feature file layout (column order is part of the on-disk format)
FEATURE_FILE_DELIMITER: str = '\t'
LABEL_COLUMN: str = 'is_tcp'
FEATURE_COLUMNS: List[str] = [
    'is_tcp',
    'src_port',
    'dst_port',
    'header_size',
    'total_packet_length',
    'payload',
]

# Model artifact
MODEL_FORMAT_VERSION: int = 1
CLASSIFIER_MAX_ITER: int = 1000

# Link layer / network layer constants
LINKTYPE_ETHERNET: int = 1  # DLT_EN10MB
ETHERNET_HEADER_LEN: int = 14
ETHERTYPE_IPV4: int = 0x0800
IP_PROTO_TCP: int = 6
IP_PROTO_UDP: int = 17

# Capture file magic numbers
PCAP_MAGICS = {
    b'\xd4\xc3\xb2\xa1',  # little-endian, microseconds
    b'\xa1\xb2\xc3\xd4',  # big-endian, microseconds
    b'\x4d\x3c\xb2\xa1',  # little-endian, nanoseconds
    b'\xa1\xb2\x3c\x4d',  # big-endian, nanoseconds
}
PCAPNG_MAGIC: bytes = b'\x0a\x0d\x0d\x0a'
