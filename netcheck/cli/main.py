import sys
from pathlib import Path

import typer
from loguru import logger

from netcheck.cli.commands import diagnose, list_checks, run


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure loguru logging."""
    logger.remove()

    file_path = log_file or Path("netcheck.log")
    logger.add(
        file_path,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="10 MB",
        encoding="utf-8",
    )

    if verbose:
        logger.add(
            sys.stderr,
            format="{time:HH:mm:ss} | {level: <8} | {message}",
            level="DEBUG",
        )


app = typer.Typer(
    name="netcheck",
    help="netcheck - local network diagnostics",
    no_args_is_help=True,
)

# Register commands
app.command(name="list")(list_checks.list_checks)
app.command(name="run")(run.run_check)
app.command(name="diagnose")(diagnose.diagnose)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output", is_eager=True),
    log_file: Path | None = typer.Option(None, "--log-file", help="Log file path"),
) -> None:
    """netcheck - run allowlisted network diagnostics and explain the results."""
    setup_logging(verbose=verbose, log_file=log_file)


if __name__ == "__main__":
    app()
