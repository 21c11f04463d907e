"""
Capture file reading and frame decoding.

Only Ethernet frames carrying IPv4 are decoded. Everything else (other link
types, ARP, IPv6, VLAN-tagged frames, non-first IPv4 fragments, truncated
or malformed frames) is dropped without raising.
"""

import logging
import struct
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Tuple, Union

import dpkt

from .config import (
    ETHERNET_HEADER_LEN,
    ETHERTYPE_IPV4,
    IP_PROTO_TCP,
    IP_PROTO_UDP,
    LINKTYPE_ETHERNET,
    PCAP_MAGICS,
    PCAPNG_MAGIC,
)
from .dataset import PacketDataset
from .errors import CaptureOpenError
from .features import extract_packet
from .types import DecodedFrame, OtherTransport, TcpPorts, Transport, UdpPorts

logger = logging.getLogger(__name__)


def _decode_transport(ip: dpkt.ip.IP) -> Optional[Transport]:
    """
    Map the IPv4 payload onto a transport variant.

    Returns None when the protocol is TCP/UDP but its header could not be
    decoded (dpkt leaves the payload as raw bytes in that case).
    """
    if ip.p == IP_PROTO_TCP:
        if not isinstance(ip.data, dpkt.tcp.TCP):
            return None
        return TcpPorts(src_port=ip.data.sport, dst_port=ip.data.dport)
    if ip.p == IP_PROTO_UDP:
        if not isinstance(ip.data, dpkt.udp.UDP):
            return None
        return UdpPorts(src_port=ip.data.sport, dst_port=ip.data.dport)
    return OtherTransport(protocol=ip.p)


def decode_frame(frame: bytes, link_type: int = LINKTYPE_ETHERNET) -> Optional[DecodedFrame]:
    """
    Decode one captured frame.

    Args:
        frame: Raw frame bytes, starting at the link-layer header
        link_type: pcap link-layer type of the capture

    Returns:
        DecodedFrame, or None if the frame is unsupported or malformed
    """
    if link_type != LINKTYPE_ETHERNET:
        return None
    if len(frame) < ETHERNET_HEADER_LEN:
        return None

    # Outer EtherType only; 802.1Q tagged frames are not IPv4 frames
    eth_type = struct.unpack('!H', frame[12:14])[0]
    if eth_type != ETHERTYPE_IPV4:
        return None

    try:
        eth = dpkt.ethernet.Ethernet(frame)
    except dpkt.dpkt.UnpackError:
        return None

    ip = eth.data
    if not isinstance(ip, dpkt.ip.IP) or ip.v != 4:
        return None

    transport = _decode_transport(ip)
    if transport is None:
        return None

    return DecodedFrame(
        ip_header_size=ip.hl * 4,
        total_length=ip.len,
        ip_protocol=ip.p,
        transport=transport,
        link_header=bytes(frame[:ETHERNET_HEADER_LEN]),
    )


class TraceReader:
    """
    Reads frames from a pcap or pcapng capture file.

    Use as a context manager; the file is closed on exit.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize trace reader.

        Args:
            path: Path to capture file
        """
        self.path = Path(path)
        self._file: Optional[BinaryIO] = None
        self._reader = None
        self.link_type: Optional[int] = None

    def open(self) -> 'TraceReader':
        """
        Open the capture file and read its global header.

        Raises:
            CaptureOpenError: If the file is missing, unreadable or not a capture
        """
        try:
            self._file = open(self.path, 'rb')
        except OSError as e:
            raise CaptureOpenError(f"Cannot open trace file {self.path}: {e}") from e

        try:
            magic = self._file.read(4)
            self._file.seek(0)
            if magic == PCAPNG_MAGIC:
                self._reader = dpkt.pcapng.Reader(self._file)
            elif magic in PCAP_MAGICS:
                self._reader = dpkt.pcap.Reader(self._file)
            else:
                raise CaptureOpenError(f"Not a pcap/pcapng file: {self.path}")
            self.link_type = self._reader.datalink()
        except (ValueError, dpkt.dpkt.UnpackError) as e:
            self.close()
            raise CaptureOpenError(f"Invalid capture file {self.path}: {e}") from e
        except CaptureOpenError:
            self.close()
            raise

        logger.debug(f"Opened {self.path} (link type {self.link_type})")
        return self

    def close(self):
        if self._file is not None:
            self._file.close()
        self._file = None
        self._reader = None

    def __enter__(self) -> 'TraceReader':
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __iter__(self) -> Iterator[Tuple[float, bytes]]:
        if self._reader is None:
            raise RuntimeError("TraceReader is not open")
        try:
            for timestamp, buf in self._reader:
                yield timestamp, buf
        except (dpkt.dpkt.NeedData, struct.error) as e:
            logger.warning(f"Truncated record at end of {self.path}, stopping: {e}")


def read_trace(path: Union[str, Path], max_packets: Optional[int] = None) -> PacketDataset:
    """
    Read a capture file and extract a ParsedPacket for every accepted frame.

    The reader is drained to completion (or to max_packets frames) and
    closed before returning.

    Args:
        path: Path to capture file
        max_packets: Optional limit on frames to read

    Returns:
        PacketDataset in frame arrival order

    Raises:
        CaptureOpenError: If the capture file cannot be opened
    """
    dataset = PacketDataset()
    frames_read = 0

    with TraceReader(path) as reader:
        for _, buf in reader:
            if max_packets is not None and frames_read >= max_packets:
                break
            frames_read += 1

            decoded = decode_frame(buf, reader.link_type)
            if decoded is None:
                continue
            dataset.append(extract_packet(decoded))

    dropped = frames_read - len(dataset)
    logger.info(f"Read {frames_read} frames from {path}: kept {len(dataset)}, dropped {dropped}")
    return dataset
