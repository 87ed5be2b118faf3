"""
bootstrap/entrypoints.py - Application entry points

Provides the CLI and API entry points.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import argparse
import json
import logging
import os
import sys

logger = logging.getLogger("bootstrap.entrypoints")


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record):
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(level: str = "INFO", log_file: str = None, json_format: bool = False,
                  stream=None) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON format for logs
        stream: Console stream (defaults to stderr so CLI output stays clean)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    # Console handler
    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def format_table(rows: List[Dict[str, Any]]) -> str:
    """Plain-text table of proposed states."""
    headers = ["recordType", "recordId", "statusCode", "statusReasonCode", "collectionName"]
    cells = [[str(row.get(h, "")) for h in headers] for row in rows]
    widths = [max([len(h)] + [len(c[i]) for c in cells]) for i, h in enumerate(headers)]

    lines = ["  ".join(h.ljust(w) for h, w in zip(headers, widths))]
    lines.append("  ".join("-" * w for w in widths))
    for row in cells:
        lines.append("  ".join(c.ljust(w) for c, w in zip(row, widths)))
    lines.append(f"{len(rows)} record(s)")
    return "\n".join(lines)


def cli_main(args: list = None) -> int:
    """
    CLI entry point: run one cascade against a JSON fixture store.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        description="StateCascade status cascade CLI",
        prog="statecascade",
    )

    parser.add_argument("-c", "--config", help="Path to configuration file", default=None)
    parser.add_argument("--store", help="JSON fixture store (overrides config)", default=None)
    parser.add_argument("-t", "--type", dest="root_type", required=True, help="Root record type")
    parser.add_argument("-i", "--ids", required=True, help="Comma separated root record ids")
    parser.add_argument("-p", "--prefix", default=None, help="Namespace prefix")
    parser.add_argument("--status", default=None, help="Status label")
    parser.add_argument("--reason", default=None, help="Status reason label")
    parser.add_argument("--update-parent", action="store_true", help="Compute the root records too")
    parser.add_argument("--restore", action="store_true", help="Restore previous status from audits")
    parser.add_argument("--include", default=None, help="Comma separated types to include")
    parser.add_argument("--exclude", default=None, help="Comma separated types to exclude")
    parser.add_argument("--recalculate", default=None, help="Comma separated types to recalculate")
    parser.add_argument("--cascade-recalculation", action="store_true",
                        help="Propagate recalculation through many-to-many edges")
    parser.add_argument("--never-restore", default=None,
                        help="Comma separated status reason labels never restored")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level",
    )
    parser.add_argument("--log-file", help="Log file path", default=None)
    parser.add_argument("--json", action="store_true", help="Output in JSON format")

    parsed = parser.parse_args(args)

    # Setup logging
    log_level = "DEBUG" if parsed.verbose else parsed.log_level
    setup_logging(level=log_level, log_file=parsed.log_file)

    from .config import load_config
    from ..cascade.request import build_request
    from ..cascade.service import CascadeService
    from ..errors.aggregator import CascadeFailure
    from ..errors.taxonomy import CascadeError
    from ..store.memory import InMemoryStore

    config = load_config(parsed.config)
    defaults = config.cascade

    fixture = parsed.store or config.store.fixture_path
    if not fixture:
        print("No store configured: pass --store or set STATECASCADE_STORE_FIXTURE", file=sys.stderr)
        return 2

    try:
        store = InMemoryStore.from_file(fixture)
        request = build_request(
            root_type=parsed.root_type,
            root_ids=parsed.ids,
            namespace_prefix=parsed.prefix or defaults.namespace_prefix,
            status_label=parsed.status or defaults.status_label,
            status_reason_label=parsed.reason or defaults.status_reason_label,
            update_parent=parsed.update_parent or defaults.update_parent,
            restore_previous=parsed.restore or defaults.restore_previous,
            include_types=parsed.include,
            exclude_types=parsed.exclude,
            recalculate_types=parsed.recalculate,
            cascade_recalculation=parsed.cascade_recalculation or defaults.cascade_recalculation,
            never_restore_reason_labels=(
                parsed.never_restore if parsed.never_restore is not None
                else defaults.never_restore_reason_labels
            ),
        )
        rows = CascadeService.from_store(store).run_to_dicts(request)

    except (CascadeFailure, CascadeError) as e:
        print(f"Cascade failed: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1

    if parsed.json:
        print(json.dumps({"response": rows, "count": len(rows)}, indent=2))
    else:
        print(format_table(rows))
    return 0


def api_main(args: list = None) -> None:
    """
    API server entry point.

    Args:
        args: Command line arguments
    """
    parser = argparse.ArgumentParser(
        description="StateCascade API Server",
        prog="statecascade-api",
    )

    parser.add_argument("-c", "--config", help="Path to configuration file", default=None)
    parser.add_argument("--store", help="JSON fixture store (overrides config)", default=None)
    parser.add_argument("-p", "--port", type=int, help="API port", default=None)
    parser.add_argument("-H", "--host", help="API host", default=None)
    parser.add_argument("-w", "--workers", type=int, help="Number of workers", default=None)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level",
    )

    parsed = parser.parse_args(args)

    from .config import load_config

    config = load_config(parsed.config)

    # Override config with CLI args
    if parsed.store:
        config.store.fixture_path = parsed.store
    if parsed.port:
        config.api.port = parsed.port
    if parsed.host:
        config.api.host = parsed.host
    if parsed.workers:
        config.api.workers = parsed.workers
    if parsed.log_level:
        config.logging.level = parsed.log_level

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.log_file,
        json_format=config.logging.json_logs,
    )

    try:
        import uvicorn

        logger.info(f"Starting API on {config.api.host}:{config.api.port}")
        if config.api.workers > 1:
            # Worker processes import the factory and reload config from the environment
            if parsed.config:
                os.environ["STATECASCADE_CONFIG"] = parsed.config
            if parsed.store:
                os.environ["STATECASCADE_API_STORE"] = parsed.store
            uvicorn.run(
                "statecascade.deployment.api:create_app",
                factory=True,
                host=config.api.host,
                port=config.api.port,
                workers=config.api.workers,
            )
        else:
            from ..deployment.api import create_fastapi_app

            uvicorn.run(create_fastapi_app(config=config), host=config.api.host, port=config.api.port)

    except KeyboardInterrupt:
        print("\nShutting down...")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


def main():
    """Main entry point for the package."""
    if len(sys.argv) > 1:
        command = sys.argv[1]

        if command == "api":
            api_main(sys.argv[2:])
        elif command == "cli":
            sys.exit(cli_main(sys.argv[2:]))
        elif command in ["-h", "--help"]:
            print("StateCascade v1.0.0")
            print()
            print("Usage: python -m statecascade.bootstrap.entrypoints <command> [options]")
            print()
            print("Commands:")
            print("  cli      Run one cascade against a fixture store")
            print("  api      Start API server")
            print()
            print("Use '<command> --help' for command-specific help.")
        else:
            sys.exit(cli_main(sys.argv[1:]))
    else:
        sys.exit(cli_main(["--help"]))


if __name__ == "__main__":
    main()
