#!/usr/bin/env python3
"""
Command-line interface for the packet protocol classifier.

Usage:
    packet-classifier capture.pcap train
    packet-classifier capture.pcap predict --model model.mdl
    python -m packet_classifier capture.pcap train --seed 2019 --verbose
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import (
    DEFAULT_FEATURE_FILE,
    DEFAULT_MODEL_FILE,
    DEFAULT_SEED,
    DEFAULT_TEST_FRACTION,
)
from .decoder import read_trace
from .prediction import predict_trace
from .training import train_model

logger = logging.getLogger(__name__)

MODES = ('train', 'predict')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Train or evaluate a TCP/UDP packet classifier from a capture file',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        'trace',
        type=str,
        help='Path to pcap/pcapng capture file'
    )

    parser.add_argument(
        'mode',
        type=str,
        help='train or predict (any other value does nothing)'
    )

    parser.add_argument(
        '--feature-file',
        type=str,
        default=DEFAULT_FEATURE_FILE,
        help=f'Feature file written in train mode (default: {DEFAULT_FEATURE_FILE})'
    )

    parser.add_argument(
        '--model',
        type=str,
        default=DEFAULT_MODEL_FILE,
        help=f'Model artifact path (default: {DEFAULT_MODEL_FILE})'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=DEFAULT_SEED,
        help=f'Random seed (default: {DEFAULT_SEED})'
    )

    parser.add_argument(
        '--test-fraction',
        type=float,
        default=DEFAULT_TEST_FRACTION,
        help=f'Held-out fraction in train mode (default: {DEFAULT_TEST_FRACTION})'
    )

    parser.add_argument(
        '--max-packets',
        type=int,
        help='Maximum number of frames to read from the trace'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    return parser


def run(args: argparse.Namespace) -> int:
    """
    Read the trace, then dispatch on mode.

    Returns:
        Process exit code
    """
    dataset = read_trace(args.trace, max_packets=args.max_packets)
    print(f"Captured {len(dataset)} packets ({dataset.tcp_count} TCP)")

    if args.mode == 'train':
        result = train_model(
            dataset,
            feature_path=args.feature_file,
            model_path=args.model,
            seed=args.seed,
            test_fraction=args.test_fraction,
        )
        print(result.metrics.format_report())
        print(f"Model saved to: {result.model_path}")
    elif args.mode == 'predict':
        report = predict_trace(dataset, model_path=args.model)
        print(report.format_report())
    else:
        logger.warning(f"Unknown mode '{args.mode}', expected one of {', '.join(MODES)}; nothing to do")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    try:
        return run(args)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
