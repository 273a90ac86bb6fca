import asyncio
import logging
import sys
from pathlib import Path

import click

from .bitbucket.errors import BitbucketError
from .config import load_config, load_environment_variables
from .logging_config import configure_logging
from .server import serve

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Load environment variables from this .env file",
)
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warn", "error"], case_sensitive=False),
    help="Override LOG_LEVEL",
)
def main(env_file: Path | None, verbose: int, log_level: str | None) -> None:
    """MCP Bitbucket Server - Bitbucket Cloud pull requests, comments, tasks and branches for MCP"""
    configure_logging("INFO")
    load_environment_variables(env_file)

    try:
        config = load_config()
    except BitbucketError as e:
        logger.error(f"Fatal error starting Bitbucket MCP Server: {e}")
        sys.exit(1)

    if log_level:
        config = config.model_copy(update={"log_level": log_level.lower()})
    logging_level = config.logging_level
    if verbose == 1:
        logging_level = "INFO"
    elif verbose >= 2:
        logging_level = "DEBUG"
    configure_logging(logging_level)

    try:
        asyncio.run(serve(config))
    except Exception as e:
        logger.exception(f"Critical Error: Server stopped due to unhandled exception: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
