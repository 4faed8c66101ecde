"""Command line interface for running transfers."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .exceptions import TransferError
from .models.progress import LogLevel, Progress
from .models.transfer import TransferConfig, parse_resources
from .registry import create_orchestrator

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Transfer users, databases, documents, files and functions between backends"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Check adapters
    check_parser = subparsers.add_parser("check", help="Check source and destination readiness")
    check_parser.add_argument("--config", required=True, help="Path to transfer config file")
    check_parser.add_argument("--resources", help="Comma separated resource kinds")
    check_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Run transfer
    run_parser = subparsers.add_parser("run", help="Run a transfer")
    run_parser.add_argument("--config", required=True, help="Path to transfer config file")
    run_parser.add_argument("--resources", help="Comma separated resource kinds")
    run_parser.add_argument("--skip-check", action="store_true", help="Skip the pre-flight check")
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command not in ("check", "run"):
        parser.print_help()
        return 1

    try:
        config = TransferConfig.from_json_file(args.config)
        if args.resources:
            config.resources = parse_resources(args.resources.split(","))

        if args.command == "check":
            return run_check(config)
        return run_transfer(config, check=config.check_before_run and not args.skip_check)

    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read config {args.config}: {e}")
        return 2
    except TransferError as e:
        logger.error(e.message)
        return 1


def run_check(config: TransferConfig) -> int:
    """Check both adapters and print problems per resource kind."""
    orchestrator = create_orchestrator(config)
    try:
        report = orchestrator.check(config.resources)
    finally:
        orchestrator.close()

    print("\n=== Transfer Check ===")
    ready = True
    for kind, problems in report.items():
        status = "ready" if not problems else "NOT READY"
        print(f"{kind.value}: {status}")
        for problem in problems:
            print(f"  - {problem}")
        ready = ready and not problems

    return 0 if ready else 1


def run_transfer(config: TransferConfig, check: bool = True) -> int:
    """Run a transfer from config and print a summary."""
    orchestrator = create_orchestrator(config)

    def show(progress: Progress):
        print(
            f"  {progress.resource.value}: {progress.current}/{progress.total} "
            f"(failed {progress.failed}, skipped {progress.skipped})"
        )

    try:
        result = orchestrator.transfer(config.resources, on_progress=show, check=check)
    finally:
        orchestrator.close()

    errors = [log for log in result.logs if log.level == LogLevel.ERROR]
    warnings = [log for log in result.logs if log.level == LogLevel.WARNING]

    print("\n" + "=" * 60)
    print("TRANSFER COMPLETE")
    print("=" * 60)
    print(f"Status: {result.status.value}")
    for kind, progress in result.progress.items():
        print(
            f"{kind.value}: {progress.current}/{progress.total} transferred, "
            f"{progress.failed} failed, {progress.skipped} skipped"
        )
    print(f"Errors: {len(errors)}")
    print(f"Warnings: {len(warnings)}")
    if result.duration_seconds:
        print(f"Duration: {result.duration_seconds:.2f} seconds")

    for log in errors[:20]:
        subject = f" [{log.resource.resource_name()} {log.resource.id}]" if log.resource else ""
        print(f"  - {log.message}{subject}")

    return 0 if result.total_failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
