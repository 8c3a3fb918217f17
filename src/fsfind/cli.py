"""Command-line interface for fsfind.

    fsfind DIRECTORY TERM [-n | -c]

``-n`` matches entry names against TERM as a regular expression (the
default); ``-c`` lists files whose content contains TERM literally. Matching
paths are printed one per line as they are found.

``--init-config PATH`` writes a commented configuration template and
``--check-config PATH`` validates an existing file; both exit without searching.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .config.parser import ConfigurationError, create_config_template, load_config, validate_config_file
from .errors import ChannelClosedPrematurely, InvalidPatternError, RootNotFoundError
from .models.config import FinderConfig
from .models.search_query import SearchMode, SearchRequest
from .tools.search_engine import SearchEngine


logger = logging.getLogger(__name__)

err_console = Console(stderr=True, soft_wrap=True)

_VERBOSITY_LEVELS = {1: logging.INFO, 2: logging.DEBUG}


def _fail(message: str) -> NoReturn:
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    sys.exit(1)


def _configure_logging(level: int) -> None:
    handler = RichHandler(console=err_console, show_time=False, show_path=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


def _load_configuration(config_path: Optional[Path]) -> FinderConfig:
    result = load_config(config_path)
    if not result.is_default:
        for warning in result.warnings:
            logger.warning(warning)
    return result.config


def _init_config(ctx: click.Context, param: click.Parameter, value: Optional[Path]) -> None:
    if value is None or ctx.resilient_parsing:
        return
    if value.exists():
        _fail(f"Refusing to overwrite existing file: {value}")
    try:
        create_config_template(value)
    except ConfigurationError as e:
        _fail(str(e))
    click.echo(f"Configuration template written to {value}")
    ctx.exit()


def _check_config(ctx: click.Context, param: click.Parameter, value: Optional[Path]) -> None:
    if value is None or ctx.resilient_parsing:
        return
    errors = validate_config_file(value)
    if errors:
        for error in errors:
            err_console.print(f"[bold red]Error:[/bold red] {escape(error)}")
        ctx.exit(1)
    click.echo(f"{value}: configuration is valid")
    ctx.exit()


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.argument('directory', type=click.Path(path_type=Path))
@click.argument('term')
@click.option('-n', '--name', 'mode', flag_value=SearchMode.NAME.value,
              help='Match entry names against TERM as a regular expression (default).')
@click.option('-c', '--content', 'mode', flag_value=SearchMode.CONTENT.value,
              help='Match files whose content contains TERM literally.')
@click.option('--case-sensitive/--ignore-case', 'case_sensitive', default=None,
              help='Case handling for name matching (default from configuration: ignore case).')
@click.option('--stream/--batch', default=True, show_default=True,
              help='Print matches as they are found, or all at once when the walk finishes.')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='Path to a YAML configuration file.')
@click.option('-v', '--verbose', count=True, help='Increase log output (-v info, -vv debug).')
@click.option('--summary', is_flag=True, help='Print match counts to stderr when done.')
@click.option('--init-config', type=click.Path(dir_okay=False, path_type=Path), callback=_init_config,
              is_eager=True, expose_value=False, help='Write a commented configuration template to PATH and exit.')
@click.option('--check-config', type=click.Path(dir_okay=False, path_type=Path), callback=_check_config,
              is_eager=True, expose_value=False, help='Validate the configuration file at PATH and exit.')
@click.version_option(__version__, prog_name='fsfind')
def cli(
    directory: Path,
    term: str,
    mode: Optional[str],
    case_sensitive: Optional[bool],
    stream: bool,
    config_path: Optional[Path],
    verbose: int,
    summary: bool,
) -> None:
    """Search DIRECTORY for entries whose name or content matches TERM."""
    _configure_logging(_VERBOSITY_LEVELS.get(min(verbose, 2), logging.WARNING))

    try:
        config = _load_configuration(config_path)
    except ConfigurationError as e:
        _fail(str(e))

    if not verbose:
        logging.getLogger().setLevel(config.logging.get_level())

    try:
        request = SearchRequest(
            root=str(directory),
            term=term,
            mode=mode or SearchMode.NAME.value,
            case_sensitive=case_sensitive,
        )
    except ValidationError as e:
        _fail(f"Invalid arguments: {e.errors()[0]['msg']}")

    engine = SearchEngine(config)
    try:
        if stream:
            count = _run_stream(engine, request)
            outcome = f"{count} matches"
        else:
            results = engine.search(request)
            click.echo(results.to_text(), nl=False)
            outcome = str(results)
    except (InvalidPatternError, RootNotFoundError) as e:
        _fail(str(e))
    except ChannelClosedPrematurely as e:
        _fail(f"Search did not complete: {e}")

    if summary:
        err_console.print(f"[dim]{escape(outcome)}[/dim]")


def _run_stream(engine: SearchEngine, request: SearchRequest) -> int:
    count = 0
    with engine.search_stream(request) as handle:
        for path in handle:
            click.echo(path)
            count += 1
    return count


def main() -> None:
    cli(prog_name='fsfind')


if __name__ == '__main__':  # pragma: no cover
    main()
