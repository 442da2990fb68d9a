"""Main CLI entry point for the notion-attach command.

This module provides the Typer application that serves as the entry point
for the notion-attach command-line tool. Global options (configuration,
verbosity, colors, log directory) are handled by the app callback; the work
is done by the put, query and get subcommands.
"""

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from src.notion_api.errors import AttachError
from src.file_store.store import FileStore
from src.cli.config import ConfigLoader
from src.cli.context import AppContext
from src.cli.errors import exit_code_for
from src.cli.get_command import GetCommand
from src.cli.models import AppConfig
from src.cli.output import OutputHandler
from src.cli.put_command import PutCommand
from src.cli.query_command import QueryCommand

app = typer.Typer(
    name="notion-attach",
    help="""Attach local files to a Notion page and fetch them back.

QUICK START:
  notion-attach put notes.txt                     # Attach a file
  notion-attach put --prefix docs/ a.pdf b.pdf    # Attach several files
  notion-attach query docs/                       # List stored files
  notion-attach get docs/a.pdf --output ./out     # Download a stored file""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

# Module logger
logger = logging.getLogger(__name__)


@dataclass
class GlobalOptions:
    """Options shared by every subcommand."""
    config_path: Optional[str]
    verbosity: int
    no_color: bool


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"notion-attach_{timestamp}.log"

        # File log always keeps block ids for manual cleanup
        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(min(level, logging.INFO))
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)
        app_logger.setLevel(min(level, logging.INFO))

        logger.info(f"Logging to file: {log_file}")


def _load_config(options: GlobalOptions, output: OutputHandler) -> AppConfig:
    try:
        return ConfigLoader.load(options.config_path)
    except AttachError as e:
        logger.error(f"Configuration error: {e}")
        output.error(str(e))
        raise typer.Exit(exit_code_for(e))


def _open_context(options: GlobalOptions, output: OutputHandler) -> AppContext:
    config = _load_config(options, output)
    try:
        return AppContext.from_config(config)
    except AttachError as e:
        logger.error(f"Setup failed: {e}")
        output.error(str(e))
        raise typer.Exit(exit_code_for(e))


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Configuration file (default: {ConfigLoader.DEFAULT_CONFIG_PATH})",
        metavar="PATH",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
) -> None:
    """Attach local files to a Notion page and fetch them back."""
    _configure_logging(verbosity, logdir)
    ctx.obj = GlobalOptions(config_path=config, verbosity=verbosity, no_color=no_color)


@app.command()
def put(
    ctx: typer.Context,
    paths: List[Path] = typer.Argument(
        ...,
        help="Files to attach",
    ),
    prefix: str = typer.Option(
        "",
        "--prefix",
        "-p",
        help="Prefix prepended to every stored file name",
    ),
    name: Optional[str] = typer.Option(
        None,
        "--name",
        "-n",
        help="Stored file name (single file only)",
    ),
    continue_on_failure: bool = typer.Option(
        False,
        "--continue-on-failure",
        help="Keep going with the next file after a failure",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        min=1,
        help="Files transferred concurrently (more than 1 does not keep page order)",
    ),
) -> None:
    """Upload files and attach each to a new block on the page."""
    options: GlobalOptions = ctx.obj
    output = OutputHandler(verbosity=options.verbosity, no_color=options.no_color)
    context = _open_context(options, output)
    try:
        exit_code = PutCommand(context, output).run(
            paths,
            prefix=prefix,
            name=name,
            continue_on_failure=continue_on_failure,
            workers=workers,
        )
    finally:
        context.close()
    raise typer.Exit(exit_code)


@app.command()
def query(
    ctx: typer.Context,
    prefix: str = typer.Argument(
        "",
        help="File name prefix to match (empty lists everything)",
    ),
) -> None:
    """List stored files whose name starts with PREFIX."""
    options: GlobalOptions = ctx.obj
    output = OutputHandler(verbosity=options.verbosity, no_color=options.no_color)
    config = _load_config(options, output)
    try:
        store = FileStore(ConfigLoader.database_file(config))
    except AttachError as e:
        output.error(str(e))
        raise typer.Exit(exit_code_for(e))
    raise typer.Exit(QueryCommand(store, output).run(prefix))


@app.command()
def get(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(
        None,
        help="Stored file name",
    ),
    url: Optional[str] = typer.Option(
        None,
        "--url",
        help="Object URL to download without a stored record",
    ),
    block_id: Optional[str] = typer.Option(
        None,
        "--block-id",
        help="Block holding the attachment (with --url)",
    ),
    space_id: Optional[str] = typer.Option(
        None,
        "--space-id",
        help="Workspace of the block (with --url)",
    ),
    output_dir: Path = typer.Option(
        Path("."),
        "--output",
        "-o",
        help=(
            "Output DIRECTORY (not a file path); the file name comes from "
            "the download URL or --output-name"
        ),
    ),
    output_name: Optional[str] = typer.Option(
        None,
        "--output-name",
        help="File name inside the --output directory (default: name in the download URL)",
    ),
) -> None:
    """Download a stored file by NAME, or any attachment by --url."""
    options: GlobalOptions = ctx.obj
    output = OutputHandler(verbosity=options.verbosity, no_color=options.no_color)
    context = _open_context(options, output)
    try:
        exit_code = GetCommand(context, output).run(
            name=name,
            url=url,
            block_id=block_id,
            space_id=space_id,
            output_dir=output_dir,
            output_name=output_name,
        )
    finally:
        context.close()
    raise typer.Exit(exit_code)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
