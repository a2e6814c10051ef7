"""Typer app configuration and logging setup."""

from __future__ import annotations

import logging
import warnings
from pathlib import Path

import typer
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# httpx cleanup noise after asyncio.run() returns
warnings.filterwarnings("ignore", message=".*Event loop is closed.*")
warnings.filterwarnings("ignore", category=ResourceWarning)

app = typer.Typer(
    name="copy-maker",
    help="AI-powered marketing copy generator",
    add_completion=False,
)


def register_commands() -> None:
    """Register all commands from feature modules."""
    from .copy.commands import evaluate, generate, list_styles_command, load, suggest

    app.command(name="generate")(generate)
    app.command(name="evaluate")(evaluate)
    app.command(name="suggest")(suggest)
    app.command(name="styles")(list_styles_command)
    app.command(name="load")(load)


def setup_logging(log_dir: Path | None = None) -> None:
    """Configure logging for CLI.

    - Suppresses console output from libraries
    - Sets up file logging for AI calls and engine operations
    """
    from ..providers.config import get_engine_settings

    log_dir = Path(log_dir or get_engine_settings().log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.CRITICAL)

    for logger_name in ["httpx", "httpcore", "urllib3", "asyncio"]:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.WARNING)
        logger.propagate = False

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")

    # Full AI request/response logging
    ai_calls_logger = logging.getLogger("ai_calls")
    ai_calls_logger.setLevel(logging.DEBUG)
    ai_calls_logger.propagate = False
    ai_calls_logger.handlers = []
    ai_file_handler = logging.FileHandler(log_dir / "ai_calls.log", encoding="utf-8")
    ai_file_handler.setLevel(logging.DEBUG)
    ai_file_handler.setFormatter(formatter)
    ai_calls_logger.addHandler(ai_file_handler)

    # Operation lifecycle, sessions and snapshots
    engine_logger = logging.getLogger("copy_maker")
    engine_logger.setLevel(logging.INFO)
    engine_logger.propagate = False
    engine_logger.handlers = []
    engine_file_handler = logging.FileHandler(log_dir / "copy_maker.log", encoding="utf-8")
    engine_file_handler.setLevel(logging.INFO)
    engine_file_handler.setFormatter(formatter)
    engine_logger.addHandler(engine_file_handler)


register_commands()


def main() -> None:
    """Entry point for the copy-maker script."""
    setup_logging()
    app()


if __name__ == "__main__":
    main()
