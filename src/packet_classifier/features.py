"""
Feature extraction and encoding.

Turns decoded frames into ParsedPacket records and projects those into the
flat PacketData records the classifier consumes.
"""

from typing import Iterable, List

import pandas as pd

from .config import FEATURE_COLUMNS
from .types import DecodedFrame, PacketData, ParsedPacket, TcpPorts


def link_header_token(header: bytes) -> str:
    """
    Render link-layer header bytes as a categorical token.

    Args:
        header: Raw header bytes

    Returns:
        Uppercase hex string without separators, e.g. "00112233AABB0800"
    """
    return header.hex().upper()


def extract_packet(frame: DecodedFrame) -> ParsedPacket:
    """
    Build a ParsedPacket from a decoded Ethernet/IPv4 frame.

    The payload token is derived from the whole Ethernet header, not from
    the IP payload body.

    Args:
        frame: Decoded frame

    Returns:
        ParsedPacket record
    """
    src_port, dst_port = frame.ports
    return ParsedPacket(
        is_tcp=isinstance(frame.transport, TcpPorts),
        src_port=src_port,
        dst_port=dst_port,
        header_size=float(frame.ip_header_size),
        total_packet_size=float(frame.total_length),
        payload=link_header_token(frame.link_header),
    )


def encode_packet(packet: ParsedPacket) -> PacketData:
    """Project a ParsedPacket onto the classifier's flat record."""
    return PacketData(
        is_tcp=packet.is_tcp,
        src_port=float(packet.src_port),
        dst_port=float(packet.dst_port),
        header_size=packet.header_size,
        total_packet_length=packet.total_packet_size,
        payload=packet.payload,
    )


def records_to_frame(records: Iterable[PacketData]) -> pd.DataFrame:
    """
    Lay out encoded records as a DataFrame in feature file column order.

    Args:
        records: PacketData records

    Returns:
        DataFrame with FEATURE_COLUMNS
    """
    rows: List[list] = [
        [r.is_tcp, r.src_port, r.dst_port, r.header_size, r.total_packet_length, r.payload]
        for r in records
    ]
    frame = pd.DataFrame(rows, columns=FEATURE_COLUMNS)
    return frame.astype({
        'is_tcp': bool,
        'src_port': float,
        'dst_port': float,
        'header_size': float,
        'total_packet_length': float,
        'payload': str,
    })


def packets_to_frame(packets: Iterable[ParsedPacket]) -> pd.DataFrame:
    """Encode packets and return them as a feature DataFrame."""
    return records_to_frame(encode_packet(p) for p in packets)
