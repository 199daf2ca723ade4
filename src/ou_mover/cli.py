"""
Command-line interface for OU Mover.

Usage:
    ou-mover <input_file> <target_ou> <log_file> <server>

All four parameters are required. Credentials and optional behavior are
read from OU_MOVER_* environment variables (see ou_mover.config).

Exit codes:
    0  The batch ran (individual items may still have failed)
    1  Configuration, log, input, connection or destination error
    2  Usage error
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .audit import AuditLog
from .config import Settings
from .directory import LdapDirectoryClient
from .errors import ConfigError, LoadError, SetupError
from .mover import BatchRunner
from .report import write_report
from .worklist import load_work_items

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ou-mover",
        description=(
            "Move the directory objects listed in a file into a target "
            "organizational unit, logging every outcome."
        ),
        epilog=(
            "Environment: OU_MOVER_BIND_USER, OU_MOVER_BIND_PASSWORD, "
            "OU_MOVER_USE_SSL, OU_MOVER_PORT, OU_MOVER_SEARCH_BASE, "
            "OU_MOVER_VALIDATE_DESTINATION, OU_MOVER_REPORT_PATH, "
            "OU_MOVER_LOG_LEVEL"
        ),
    )
    parser.add_argument(
        "input_file",
        help="Text file with one identifier per line (or an XLSX file, Column A)",
    )
    parser.add_argument(
        "target_ou",
        help="Distinguished name of the destination OU",
    )
    parser.add_argument(
        "log_file",
        help="Audit log file (appended to; parent directories are created)",
    )
    parser.add_argument(
        "server",
        help="Directory server address",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one batch.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)

    try:
        audit = AuditLog.open(args.log_file)
    except SetupError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with audit:
        audit.info(
            f"=== OU Mover {__version__} session started: input={args.input_file}, "
            f"destination={args.target_ou}, server={args.server} ==="
        )

        try:
            items = load_work_items(args.input_file, audit)
        except LoadError as e:
            audit.error(str(e))
            return 1

        try:
            client = LdapDirectoryClient.connect(args.server, settings)
        except SetupError as e:
            audit.error(str(e))
            return 1

        runner = BatchRunner(
            args.target_ou,
            client,
            audit,
            validate_destination=settings.validate_destination,
        )
        try:
            result = runner.run(items)
        except SetupError as e:
            audit.error(str(e))
            return 1
        finally:
            client.close()

        if settings.report_path:
            try:
                path = write_report(result, settings.report_path, args.target_ou, args.server)
            except OSError as e:
                audit.error(f"Could not write report '{settings.report_path}': {e}")
            else:
                audit.info(f"Report written to {path}")

        if audit.write_failures:
            print(
                f"Warning: {audit.write_failures} entries could not be written "
                f"to {audit.path}",
                file=sys.stderr,
            )

    return 0
