"""Direct-I/O write benchmark CLI."""

import argparse
import logging
import sys
from typing import Optional, Sequence

import yaml

from bench.config import BenchSettings, init_settings
from bench.core.reporter import LatencyReporter
from bench.runner import run_benchmark
from common.exceptions import BenchmarkError
from common.utils import load_yaml

logger = logging.getLogger(__name__)

# Settings fields that can be given on the command line
OPTION_FIELDS = (
    "drives",
    "concurrent",
    "filesize",
    "nfiles",
    "tree",
    "debug",
    "slow_threshold",
    "block_size",
    "direct_io",
    "log_level",
)


def build_parser() -> argparse.ArgumentParser:
    """Named options only; anything left unset comes from the environment."""
    parser = argparse.ArgumentParser(
        prog="diobench",
        description="Measure direct-I/O write latency across storage mount points",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Every option can also be set through the environment: DRIVES, CONCURRENT,\n"
            "FILESIZE, NFILES, TREE, DEBUG, SLOW_THRESHOLD, BLOCK_SIZE, DIRECT_IO, LOG_LEVEL."
        ),
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument("-d", "--drives", help="Drives, e.g. /mnt/drive{1...12},/mnt/extra")
    parser.add_argument("-c", "--concurrent", help="Concurrent writes per batch (default: 100)")
    parser.add_argument("-s", "--filesize", help="Bytes per object (default: 128KiB)")
    parser.add_argument("-n", "--nfiles", help="Number of objects (default: 8M)")
    parser.add_argument(
        "--tree", action=argparse.BooleanOptionalAction,
        help="Write <drive>/<index>/<name> instead of <drive>/<index>.<name>",
    )
    parser.add_argument("--debug", action="store_true", help="Report slow writes")
    parser.add_argument("--slow-threshold", help="Slow write threshold (default: 1s)")
    parser.add_argument("--block-size", help="Aligned buffer size (default: 4MiB)")
    parser.add_argument(
        "--no-direct-io", dest="direct_io", action="store_false",
        help="Use buffered I/O (for filesystems without O_DIRECT)",
    )
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    parser.add_argument("--config", help="YAML file with settings")
    return parser


def load_settings(args: argparse.Namespace) -> BenchSettings:
    """Merge the YAML file and command line options over the environment."""
    overrides = {}
    config_path = getattr(args, "config", None)
    if config_path:
        data = load_yaml(config_path)
        if not isinstance(data, dict):
            raise ValueError(f"{config_path} must contain a mapping of settings")
        overrides.update(data)
    
    for field in OPTION_FIELDS:
        if hasattr(args, field):
            overrides[field] = getattr(args, field)
    
    return init_settings(**overrides)


def configure_logging(settings: BenchSettings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format=settings.log_format,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    
    try:
        settings = load_settings(args)
    except (ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1
    
    configure_logging(settings)
    
    try:
        result = run_benchmark(settings)
    except BenchmarkError as e:
        logger.error(f"Benchmark aborted: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    
    LatencyReporter().report(result)
    if settings.debug and result.slow_writes:
        # stdout carries only the four summary lines
        LatencyReporter(sys.stderr).report_slow_writes(result, settings.slow_threshold)
    return 0


if __name__ == "__main__":
    sys.exit(main())
