# NOTE: All imports except the basic ones are lazy in this module. Let's keep it that way.
import asyncio
import atexit
import logging
from collections.abc import Callable
from collections.abc import Coroutine
from contextlib import suppress
from dataclasses import dataclass
from functools import wraps
from pathlib import Path
from typing import TYPE_CHECKING
from typing import Any
from typing import TypeVar
from typing import cast

import click
import uvloop

from subgraph_status import __version__
from subgraph_status import env
from subgraph_status.sys import set_up_process

if TYPE_CHECKING:
    from subgraph_status.config import StatusConfig

_logger = logging.getLogger(__name__)


def _get_paths(
    params: dict[str, Any],
) -> tuple[list[Path], list[Path]]:
    from subgraph_status.config import DEFAULT_CONFIG_PATH
    from subgraph_status.exceptions import ConfigurationError

    config_args: list[str] = params.pop('config', [])
    env_file_args: list[str] = params.pop('env_file', [])

    config_paths: list[Path] = []
    env_file_paths: list[Path] = []

    # NOTE: Config file is optional; defaults are good enough to proxy the public API
    if not config_args and DEFAULT_CONFIG_PATH.is_file():
        config_args = [str(DEFAULT_CONFIG_PATH)]

    for arg in config_args:
        path = Path(arg)
        if path.is_dir():
            path = path / DEFAULT_CONFIG_PATH
        if not path.is_file():
            raise ConfigurationError(f'Config file not found: {path}')
        config_paths.append(path)

    for arg in env_file_args:
        path = Path(arg)
        if not path.is_file():
            raise ConfigurationError(f'Env file not found: {path}')
        env_file_paths.append(path)

    return config_paths, env_file_paths


def _load_env_files(env_file_paths: list[Path]) -> None:
    for path in env_file_paths:
        from dotenv import load_dotenv

        _logger.info('Applying env_file `%s`', path)
        load_dotenv(path, override=True)


def echo(message: str, err: bool = False, **styles: Any) -> None:
    with suppress(BrokenPipeError):
        click.secho(message, err=err, **styles)


def _print_help_atexit(error: Exception) -> None:
    """Prints a helpful error message after the traceback"""
    from subgraph_status.exceptions import Error

    def _print() -> None:
        if isinstance(error, Error):
            echo(error.help(), err=True)
        else:
            echo(Error.default_help(), err=True)

    atexit.register(_print)


WrappedCommandT = TypeVar('WrappedCommandT', bound=Callable[..., Coroutine[Any, Any, None]])


@dataclass
class CLIContext:
    config_paths: list[Path]
    config: 'StatusConfig'


def _cli_wrapper(fn: WrappedCommandT) -> WrappedCommandT:
    @wraps(fn)
    def wrapper(ctx: click.Context, *args: Any, **kwargs: Any) -> None:
        try:
            uvloop.run(fn(ctx, *args, **kwargs))
        except (KeyboardInterrupt, asyncio.CancelledError):
            pass
        except click.exceptions.Exit:
            raise
        except Exception as e:
            _print_help_atexit(e)
            raise e

    return cast(WrappedCommandT, wrapper)


@click.group(context_settings={'max_content_width': 120})
@click.version_option(__version__)
@click.option(
    '--config',
    '-c',
    type=str,
    multiple=True,
    help='A path to subgraph-status config.',
    default=[],
    metavar='PATH',
    envvar='SUBGRAPH_STATUS_CONFIG',
)
@click.option(
    '--env-file',
    '-e',
    type=str,
    multiple=True,
    help='A path to .env file containing `KEY=value` strings.',
    default=[],
    metavar='PATH',
    envvar='SUBGRAPH_STATUS_ENV_FILE',
)
@click.pass_context
@_cli_wrapper
async def cli(ctx: click.Context, config: list[str], env_file: list[str]) -> None:
    """Proxy subgraph indexing status from a graph-node index-node API."""
    set_up_process()

    from subgraph_status.sys import set_up_logging

    set_up_logging()

    from subgraph_status.config import StatusConfig

    config_paths, env_file_paths = _get_paths(ctx.params)
    # NOTE: Apply env files before loading the config
    _load_env_files(env_file_paths)

    _config = StatusConfig.load(
        paths=config_paths,
        environment=True,
    )
    _config.set_up_logging()

    ctx.obj = CLIContext(
        config_paths=config_paths,
        config=_config,
    )


@cli.command()
@click.option('--host', type=str, default=None, help='Override `api.host` config value.')
@click.option('--port', type=int, default=None, help='Override `api.port` config value.')
@click.pass_context
@_cli_wrapper
async def run(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the status API.

    Execution can be gracefully interrupted with `Ctrl+C` or `SIGINT` signal.
    """
    from subgraph_status.api import run_api
    from subgraph_status.datasource import IndexNodeDatasource

    config: StatusConfig = ctx.obj.config
    if host is not None:
        config.api.host = host
    if port is not None:
        config.api.port = port

    datasource = IndexNodeDatasource(config.datasource)
    await run_api(datasource, config.api)


@cli.command()
@click.argument('subgraph_id', type=str)
@click.pass_context
@_cli_wrapper
async def status(ctx: click.Context, subgraph_id: str) -> None:
    """Print indexing status of a subgraph by deployment ID or name.

    Exits with code 1 if status can't be fetched.
    """
    from subgraph_status.api import StatusProxyHandler
    from subgraph_status.datasource import IndexNodeDatasource
    from subgraph_status.utils import json_dumps

    config: StatusConfig = ctx.obj.config
    datasource = IndexNodeDatasource(config.datasource)
    async with datasource:
        result = await StatusProxyHandler(datasource).handle(subgraph_id)

    echo(json_dumps(result.to_json()).decode())
    if not result.ok:
        ctx.exit(1)


@cli.group()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Commands to manage subgraph-status configuration."""
    pass


@config.command(name='export')
@click.pass_context
def config_export(ctx: click.Context) -> None:
    """Print config after substituting environment variables and applying defaults.

    WARNING: Avoid sharing the output with 3rd-parties; it may contain secrets!
    """
    config: StatusConfig = ctx.obj.config
    echo(config.dump())


@config.command(name='env')
@click.option('--internal', '-i', is_flag=True, help='Include internal variables.')
@click.pass_context
def config_env(ctx: click.Context, internal: bool) -> None:
    """Dump environment variables used in config.

    If variable is not set, default value will be used.
    """
    config: StatusConfig = ctx.obj.config
    environment = dict(config.environment)
    if internal:
        environment.update({f'SUBGRAPH_STATUS_{k}': v for k, v in env.dump().items()})
    echo('\n'.join(f'{k}={v}' for k, v in sorted(environment.items())))
