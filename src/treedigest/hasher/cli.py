"""CLI command for hashing a directory tree."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from treedigest.common import ConfigLoader, ConfigurationError, setup_logging
from .config import TreeDigestConfig
from .digests import supported_algorithms
from .runner import TreeDigestRunner

# Application name derived from the top-level package
APP_NAME = (__package__ or "treedigest.hasher").split('.')[0]


def hash_command(
    config: TreeDigestConfig,
    root_override: Optional[Path] = None,
    concurrency_override: Optional[int] = None,
    follow_symlinks_override: Optional[bool] = None,
    hash_algorithm_override: Optional[str] = None,
    exclude_pattern_override: Optional[str] = None,
) -> int:
    """Hash every file under the configured root.

    Args:
        config: Configuration object
        root_override: Optional override for the root directory
        concurrency_override: Optional override for the worker limit
        follow_symlinks_override: Optional override for symlink following
        hash_algorithm_override: Optional override for the digest algorithm
        exclude_pattern_override: Optional override for the exclusion pattern

    Returns:
        Exit code (0 for success, 1 for configuration or hashing failures)
    """
    logger = logging.getLogger(__package__ or __name__)

    hasher = config.hasher
    root = root_override if root_override is not None else Path(hasher.root_path)
    concurrency = concurrency_override if concurrency_override is not None else hasher.concurrency
    follow_symlinks = follow_symlinks_override if follow_symlinks_override is not None else hasher.follow_symlinks
    hash_algorithm = hash_algorithm_override if hash_algorithm_override is not None else hasher.hash_algorithm
    exclude_pattern = exclude_pattern_override if exclude_pattern_override is not None else hasher.exclude_pattern

    try:
        runner = TreeDigestRunner(
            root=root,
            concurrency=concurrency,
            follow_symlinks=follow_symlinks,
            algorithm=hash_algorithm,
            exclude_pattern=exclude_pattern,
            chunk_size=hasher.chunk_size,
        )
    except ConfigurationError as e:
        logger.error(e.message)
        return 1

    outcome = runner.run()
    if not outcome.succeeded:
        logger.error(f"Error: {outcome.first_error}")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Compute content digests for every file under a directory, in parallel"
    )
    parser.add_argument(
        "--dir",
        type=Path,
        required=False,
        help="Directory to process (overrides config, default: .)"
    )
    parser.add_argument(
        "--poolsize",
        type=int,
        required=False,
        help="Number of workers; 0 or less means unlimited (overrides config, default: 8)"
    )
    parser.add_argument(
        "--follow-symlinks",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Hash symlink targets instead of skipping symlinks (overrides config, default: off)"
    )
    parser.add_argument(
        "--hash",
        required=False,
        help=f"Hash algorithm. Choices are {', '.join(supported_algorithms())} (default: sha256)"
    )
    parser.add_argument(
        "--exclude",
        required=False,
        help="Exclude files and directories whose path matches this regex pattern"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Diagnostic log level (overrides config)"
    )
    parser.add_argument(
        "--log-format",
        choices=["simple", "detailed", "json"],
        type=str.lower,
        help="Diagnostic log format (overrides config)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the treedigest command."""
    args = build_parser().parse_args(argv)

    loader = ConfigLoader(
        app_name=APP_NAME,
        config_class=TreeDigestConfig
    )

    try:
        config = loader.load(defaults_path=args.config)
    except ValidationError as e:
        # Logging config is part of what failed, so report with defaults
        setup_logging(level=args.log_level or "INFO", format=args.log_format or "simple")
        logging.getLogger(APP_NAME).error(f"invalid configuration: {e}")
        return 1

    log_file = Path(config.logging.file) if config.logging.file else None
    setup_logging(
        level=args.log_level or config.logging.level,
        format=args.log_format or config.logging.format,
        log_file=log_file,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )

    return hash_command(
        config=config,
        root_override=args.dir,
        concurrency_override=args.poolsize,
        follow_symlinks_override=args.follow_symlinks,
        hash_algorithm_override=args.hash,
        exclude_pattern_override=args.exclude,
    )


if __name__ == "__main__":
    sys.exit(main())
