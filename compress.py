#!/usr/bin/env python3
"""
Image Compression CLI

Compress a batch of images with a quality preset and save the results one by
one or as a single ZIP archive.

Examples:
    # Medium preset, keep the original formats
    python compress.py photos/*.jpg -o ./compressed/

    # Custom quality, convert everything to WebP, bundle into a ZIP
    python compress.py ./images/ --quality 55 --format webp --zip

    # Only show the size estimates
    python compress.py ./images/ --preset low --estimate-only

    # Use a running compression server instead of compressing in-process
    python compress.py ./images/ --server http://127.0.0.1:5000
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from imgsqueeze.archive import DirectorySaver
from imgsqueeze.backends import HttpBackend, LocalBackend
from imgsqueeze.compressor import ImageCompressor, OUTPUT_FORMATS
from imgsqueeze.config import Config
from imgsqueeze.estimator import PRESETS
from imgsqueeze.orchestrator import BatchOrchestrator
from imgsqueeze.records import RecordStatus
from imgsqueeze.session import CompressionSession
from imgsqueeze.utils import format_size, is_supported_image, setup_logging


def collect_inputs(inputs):
    """Expand files and directories into a sorted list of image paths."""
    paths = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            paths.extend(sorted(p for p in path.iterdir() if p.is_file() and is_supported_image(p)))
        elif path.is_file():
            paths.append(path)
        else:
            print(f"Warning: '{path}' does not exist, skipping")
    return paths


def print_estimates(session):
    """Print the per-file estimate table and totals."""
    print(f"\n{'File':<40} {'Original':>12} {'Estimate':>12}")
    print("-" * 66)
    for record in session:
        print(f"{record.name[:40]:<40} {format_size(record.source_bytes):>12} {format_size(record.estimated_bytes):>12}")

    totals = session.totals()
    print("-" * 66)
    print(f"{'Total':<40} {format_size(totals.original_bytes):>12} {format_size(totals.estimated_bytes):>12}")
    print(f"Estimated savings: ~{format_size(max(totals.estimated_savings, 0))}")


def print_results(session):
    """Print the outcome of each record and the batch totals."""
    print(f"\n{'='*60}")
    print("BATCH COMPRESSION COMPLETE")
    print(f"{'='*60}")
    for record in session:
        if record.status == RecordStatus.DONE:
            compressed = record.result.compressed
            print(
                f"  {record.name}: {format_size(record.source_bytes)} -> "
                f"{format_size(compressed.size)} {compressed.format.upper()} "
                f"({compressed.width}x{compressed.height}, -{record.compression_ratio:.0f}%)"
            )
        else:
            print(f"  {record.name}: FAILED - {record.error_message}")

    totals = session.totals()
    print(f"{'-'*60}")
    print(f"Successful: {totals.completed_count}/{totals.record_count} images")
    print(f"Total size: {format_size(totals.original_bytes)} -> {format_size(totals.compressed_bytes)}")
    print(f"Saved:      {round(totals.compression_percent)}%")
    print(f"{'='*60}")


def build_backend(args, config):
    server_url = args.server or config.server_url
    if server_url:
        return HttpBackend(server_url, timeout=config.request_timeout)
    return LocalBackend(ImageCompressor(verbose=not args.quiet))


async def run(args, config) -> int:
    session = CompressionSession(
        preset=args.preset,
        quality=args.quality if args.quality is not None else CompressionSession.DEFAULT_QUALITY,
        output_format=args.format,
    )
    if args.quality is not None and args.preset != 'custom':
        session.set_quality(args.quality)

    session.add_paths(collect_inputs(args.inputs))
    if not len(session):
        print("Error: no supported images found")
        return 1

    print_estimates(session)
    if args.estimate_only:
        return 0

    output_dir = Path(args.output) if args.output else config.output_dir
    orchestrator = BatchOrchestrator(
        session,
        backend=build_backend(args, config),
        saver=DirectorySaver(output_dir),
        workers=args.workers or config.workers,
    )

    await orchestrator.start_batch()
    print_results(session)

    if args.zip:
        path = await orchestrator.download_archive()
        if path:
            print(f"Archive: {path}")
    else:
        for record in session.done_records():
            orchestrator.download_single(record)
        print(f"Output: {output_dir}")

    totals = session.totals()
    return 0 if totals.completed_count == totals.record_count else 1


def main():
    parser = argparse.ArgumentParser(
        description='Compress images with a quality preset',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s photo.jpg -o ./out/
  %(prog)s ./images/ --preset high --format webp --zip
  %(prog)s ./images/ --quality 55 --estimate-only
  %(prog)s ./images/ --server http://127.0.0.1:5000
        """
    )

    parser.add_argument(
        'inputs',
        nargs='+',
        help='Input image files or directories'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output directory (default: IMGSQUEEZE_OUTPUT_DIR or ./compressed)'
    )

    parser.add_argument(
        '--preset',
        type=str,
        choices=PRESETS,
        default='medium',
        help='Quality preset: high (90), medium (70), low (50) or custom (default: medium)'
    )

    parser.add_argument(
        '--quality',
        type=int,
        default=None,
        help='Custom quality 10-100; implies --preset custom'
    )

    parser.add_argument(
        '--format',
        type=str,
        choices=OUTPUT_FORMATS,
        default='original',
        help='Output format (default: original)'
    )

    parser.add_argument(
        '--server',
        type=str,
        default=None,
        help='Compression server URL (default: compress in-process)'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Concurrent compression calls (default: 1)'
    )

    parser.add_argument(
        '--zip',
        action='store_true',
        help='Save all results in a single ZIP archive'
    )

    parser.add_argument(
        '--estimate-only',
        action='store_true',
        help='Print size estimates without compressing'
    )

    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Suppress progress output'
    )

    args = parser.parse_args()

    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    setup_logging('imgsqueeze', logging.WARNING if args.quiet else config.log_level_value)

    if args.quality is not None and not 10 <= args.quality <= 100:
        print("Error: --quality must be between 10 and 100")
        sys.exit(1)

    sys.exit(asyncio.run(run(args, config)))


if __name__ == '__main__':
    main()
