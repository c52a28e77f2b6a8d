"""Vector agent configuration management.

This module can be used in two ways:
1. As a script: `python vector_configuration.py -c vector-config.yaml`
2. As a module: `from vector_configuration import apply_configuration`
"""

import logging
import sys
from argparse import ArgumentParser
from typing import Optional, Sequence

import constants
from configuration import configuration
from convergence import Convergence, ConvergenceReport
from log import get_logger, set_log_level

logger = get_logger(__name__)


# =============================================================================
# Main Convergence Function
# =============================================================================


def apply_configuration(
    config_file: str,
    dry_run: bool = False,
    skip_install: bool = False,
    skip_service: bool = False,
) -> ConvergenceReport:
    """Load the host configuration and converge the agent to it.

    Args:
        config_file: Path to the host configuration (YAML)
        dry_run: Report changes without applying them
        skip_install: Leave the agent package untouched
        skip_service: Leave the unit file and the service untouched

    Returns:
        ConvergenceReport describing what changed
    """
    logger.info("Reading host configuration from file %s", config_file)
    configuration.load_configuration(config_file)

    convergence = Convergence(configuration.configuration)
    return convergence.run(
        dry_run=dry_run, skip_install=skip_install, skip_service=skip_service
    )


def print_report(report: ConvergenceReport) -> None:
    """Log a short human-readable summary of a convergence run."""
    prefix = "would be " if report.dry_run else ""
    for path in report.written:
        logger.info("%swritten: %s", prefix, path)
    for path in report.removed:
        logger.info("%sremoved: %s", prefix, path)
    if report.restarted:
        logger.info("service %srestarted", prefix)
    if not report.config_changed and not report.unit_file_changed:
        logger.info("configuration is up to date")


# =============================================================================
# CLI Entry Point
# =============================================================================


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""
    parser = ArgumentParser(
        description="Install, configure and run the Vector agent",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=constants.DEFAULT_CONFIGURATION_FILE,
        help=f"Host config file (default: {constants.DEFAULT_CONFIGURATION_FILE})",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Show what would change without changing anything",
    )
    parser.add_argument(
        "--skip-install",
        action="store_true",
        help="Do not install the agent package",
    )
    parser.add_argument(
        "--skip-service",
        action="store_true",
        help="Do not manage the unit file or the service",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)
    if args.verbose:
        set_log_level(logging.DEBUG)

    report = apply_configuration(
        args.config,
        dry_run=args.dry_run,
        skip_install=args.skip_install,
        skip_service=args.skip_service,
    )
    print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
