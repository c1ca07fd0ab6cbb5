"""
Command line entry point for the collection sync
"""
import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

from .config.manager import ConfigManager, SyncConfig
from .core.exceptions import ConfigError
from .sync.engine import SyncOrchestrator

logger = logging.getLogger("dbsync")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Copy the content collections from REMOTE_URI into LOCAL_URI"
    )
    parser.add_argument("--config", help="YAML or JSON file with sync settings")
    parser.add_argument("--log-level", help="Logging level (default: INFO or SYNC_LOG_LEVEL)")
    parser.add_argument("--skip-verification", dest="skip_verification", action="store_const", const=True,
                        help="Do not count documents after the sync")
    parser.add_argument("--direct", dest="use_direct_transfer", action="store_const", const=True,
                        help="Copy documents over the driver instead of mongodump/mongorestore")
    parser.add_argument("--sequential", dest="use_parallel", action="store_const", const=False,
                        help="Process one collection at a time")
    parser.add_argument("--max-parallel", dest="max_parallel", type=int,
                        help="Maximum collections in flight")
    parser.add_argument("--batch-size", dest="batch_size", type=int,
                        help="Documents per insert batch for direct transfer")
    return parser.parse_args(argv)


def resolve_log_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ConfigError(f"Invalid log level {name!r}; use DEBUG, INFO, WARNING, ERROR or CRITICAL")
    return level


def configure_logging(config: SyncConfig, level_override: Optional[str] = None):
    """Apply the configured level and add the log file handler"""
    root = logging.getLogger()
    root.setLevel(resolve_log_level(level_override or config.log_level))
    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)


async def main(argv: Optional[List[str]] = None) -> int:
    """Run a sync; returns the process exit code"""
    args = parse_args(argv)
    overrides: Dict[str, Any] = {
        "skip_verification": args.skip_verification,
        "use_direct_transfer": args.use_direct_transfer,
        "use_parallel": args.use_parallel,
        "max_parallel": args.max_parallel,
        "batch_size": args.batch_size,
    }

    try:
        config = ConfigManager().load_config(args.config, overrides=overrides)
        configure_logging(config, args.log_level)
    except ConfigError as e:
        logger.error(f"❌ {e}")
        return 1

    orchestrator = SyncOrchestrator(config)
    try:
        await orchestrator.run()
    except Exception:
        # Details were logged by the orchestrator before cleanup
        return 1
    return 0


def run():
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, handlers=[logging.StreamHandler()])
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Sync interrupted by user")
        exit_code = 1
    logger.info("👋 Exiting...")
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
