"""Trellis CLI - Main Entry Point.

Commands:
    serve  - Run a TrellisServer with uvicorn
    routes - List the compiled routes of a TrellisServer
"""

import importlib
import sys
from pathlib import Path
from typing import Any

import click
from dotenv import load_dotenv

from . import __version__
from .server import TrellisServer


class TargetError(click.ClickException):
    """TARGET could not be loaded as a TrellisServer."""
    pass


def import_target(target: str, app_dir: str = ".") -> Any:
    """Import ``module:attribute`` and return the object it names."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise TargetError(f"TARGET must look like 'module:attribute', got {target!r}")

    app_path = str(Path(app_dir).resolve())
    if app_path not in sys.path:
        sys.path.insert(0, app_path)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise TargetError(f"Could not import {module_name!r}: {e}") from e

    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise TargetError(f"{module_name!r} has no attribute {attr!r}") from None
    return obj


def load_target(target: str, app_dir: str = ".") -> TrellisServer:
    """
    Import ``module:attribute`` and return the TrellisServer it names.

    The attribute may also be a zero-argument factory returning one.
    """
    obj = import_target(target, app_dir)
    if not isinstance(obj, TrellisServer) and callable(obj):
        obj = obj()
    if not isinstance(obj, TrellisServer):
        raise TargetError(f"{target} is not a TrellisServer (got {type(obj).__name__})")
    return obj


@click.group()
@click.version_option(version=__version__, prog_name="trellis")
def cli():
    """Declarative controllers over a small ASGI core.

    \b
    Quick start:
      trellis routes myapp.main:server
      trellis serve myapp.main:server --port 4600
    """
    pass


# ============================================================================
# Commands
# ============================================================================

@cli.command('serve')
@click.argument('target')
@click.option('--host', type=str, default='127.0.0.1', help='Server host')
@click.option('--port', type=int, default=None, help='Server port (default: PORT or 4600)')
@click.option('--reload/--no-reload', default=False, help='Enable hot-reload')
@click.option('--log-level', type=click.Choice(['debug', 'info', 'warning', 'error']),
              default='info', help='Logging level')
@click.option('--env-file', type=click.Path(dir_okay=False), default=None,
              help='.env file loaded before TARGET is imported')
@click.option('--app-dir', type=click.Path(file_okay=False), default='.',
              help='Directory added to sys.path for importing TARGET')
def serve(target: str, host: str, port: int, reload: bool, log_level: str,
          env_file: str, app_dir: str):
    """
    Start the server.

    Examples:
      trellis serve app:server
      trellis serve app:create_server --port 8080 --log-level debug
    """
    load_dotenv(env_file, override=False)
    is_factory = not isinstance(import_target(target, app_dir), TrellisServer)
    server = load_target(target, app_dir)

    run_options = {}
    if reload:
        run_options = {
            "import_string": target,
            "factory": is_factory,
            "app_dir": str(Path(app_dir).resolve()),
        }

    try:
        server.run(host=host, port=port, reload=reload, log_level=log_level, **run_options)
    except KeyboardInterrupt:
        click.echo("Server stopped")


@cli.command('routes')
@click.argument('target')
@click.option('--env-file', type=click.Path(dir_okay=False), default=None,
              help='.env file loaded before TARGET is imported')
@click.option('--app-dir', type=click.Path(file_okay=False), default='.',
              help='Directory added to sys.path for importing TARGET')
def routes(target: str, env_file: str, app_dir: str):
    """
    List compiled routes in registration order.

    Examples:
      trellis routes app:server
    """
    load_dotenv(env_file, override=False)
    server = load_target(target, app_dir)

    for route in server.routes:
        handler = f"{route.controller_class.__name__}.{route.handler_name}"
        click.echo(f"{route.http_method.value:<7} {route.full_path or '/':<40} {handler}")


def main():
    """Entry point for `trellis` command."""
    cli()


if __name__ == '__main__':
    main()
