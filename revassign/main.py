"""revassign entry point.

Starts the HTTP API over a SQLite repository. Usage: revassign [serve]
[--config PATH] [--check].
"""

import argparse
import logging
import sys
from pathlib import Path

from revassign.config import AppConfig, load_config
from revassign.logging import AppLogging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI with optional subcommand (serve)."""
    argv = argv if argv is not None else sys.argv[1:]
    rest = list(argv)
    if rest and rest[0] == "serve":
        rest = rest[1:]

    parser = argparse.ArgumentParser(
        prog="revassign",
        description="revassign - pull request reviewer assignment service",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    return parser.parse_args(rest)


def run_service(config: AppConfig) -> None:
    """Open the database, build the engine and serve HTTP."""
    from revassign.api import run_server
    from revassign.engine import RandomSelector, ReviewerAssignmentEngine
    from revassign.store import SQLiteRepository

    AppLogging(config.logging).setup()
    log = logging.getLogger("revassign.main")

    repository = SQLiteRepository(
        db_path=config.database.path,
        connect_retries=config.database.connect_retries,
        retry_delay_seconds=config.database.retry_delay_seconds,
        busy_timeout_seconds=config.database.busy_timeout_seconds,
    )
    engine = ReviewerAssignmentEngine(repository, RandomSelector())
    log.info(
        "revassign started | db=%s | listen=%s:%s",
        config.database.path,
        config.server.host,
        config.server.port,
    )
    try:
        run_server(engine, config.server)
    finally:
        repository.close()


def main(argv: list[str] | None = None) -> int:
    """Entry point: load config and serve."""
    args = parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            logging.getLogger("revassign").warning("config.yaml not found, using config.example.yaml")

    config = load_config(config_path)

    if args.check:
        print("Config OK:", config.database.path, f"{config.server.host}:{config.server.port}")
        return 0

    try:
        run_service(config)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logging.getLogger("revassign.main").exception("Fatal error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
