"""Click CLI entry point for code-stats-ls."""
from __future__ import annotations

import logging
import sys
import threading

import click

from codestats_ls import __app_name__, __version__
from codestats_ls.config import get_cache_dir, read_config
from codestats_ls.errors import CacheError, CodeStatsError


def _configure_logging(verbose: bool) -> None:
    # stderr only: stdout carries the LSP stream when serving.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fail(message: str) -> None:
    click.echo(f"{__app_name__}: {message}", err=True)
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name=__app_name__)
@click.option("--verbose", is_flag=True, help="Debug logging on stderr")
@click.option("--cache-dir", type=click.Path(file_okay=False), default=None,
              help="Directory of the offline pulse cache")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, cache_dir: str | None) -> None:
    """Code::Stats language server. Without a command, serves LSP on stdio."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["cache_dir"] = cache_dir or get_cache_dir()
    ctx.obj["verbose"] = verbose
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the language server on stdin/stdout."""
    from codestats_ls.agent import XpAgent
    from codestats_ls.server import EditorLogHandler, LanguageServer

    cache_dir = ctx.obj["cache_dir"]
    try:
        config = read_config()
        agent = XpAgent.from_config(config, cache_dir)
    except CodeStatsError as e:
        _fail(str(e))

    server = LanguageServer(agent, sys.stdin.buffer, sys.stdout.buffer)
    package_logger = logging.getLogger("codestats_ls")
    package_logger.setLevel(logging.DEBUG if ctx.obj["verbose"] else logging.INFO)
    # Without --verbose the editor is the only log sink.
    package_logger.propagate = ctx.obj["verbose"]
    package_logger.addHandler(EditorLogHandler(server))

    sys.exit(server.serve())


@cli.group()
def cache() -> None:
    """Inspect or manage the offline pulse cache."""
    pass


def _open_cache(ctx: click.Context):
    from codestats_ls.telemetry.cache import PulseCache
    try:
        return PulseCache(ctx.obj["cache_dir"])
    except CacheError as e:
        _fail(str(e))


@cache.command("list")
@click.pass_context
def cache_list(ctx: click.Context) -> None:
    """Show pulses waiting to be sent."""
    from codestats_ls.output.terminal import render_cached_pulses

    pulse_cache = _open_cache(ctx)
    try:
        pulses = pulse_cache.list()
    except CacheError as e:
        _fail(str(e))
    render_cached_pulses(pulses, pulse_cache.cache_dir)


@cache.command("flush")
@click.pass_context
def cache_flush(ctx: click.Context) -> None:
    """Try to send every cached pulse now."""
    from codestats_ls.output.terminal import render_flush_result
    from codestats_ls.telemetry.flusher import CacheFlusher
    from codestats_ls.telemetry.share import PulseClient

    try:
        config = read_config()
    except CodeStatsError as e:
        _fail(str(e))
    pulse_cache = _open_cache(ctx)
    flusher = CacheFlusher(
        pulse_cache, PulseClient(config.api_url, config.api_token), threading.Event())
    try:
        sent = flusher.flush()
        remaining = pulse_cache.count()
    except CacheError as e:
        _fail(str(e))
    render_flush_result(sent, remaining)
    if remaining:
        sys.exit(1)


@cache.command("clear")
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_context
def cache_clear(ctx: click.Context, yes: bool) -> None:
    """Delete every cached pulse. Their XP is lost."""
    from codestats_ls.output.terminal import render_cleared

    pulse_cache = _open_cache(ctx)
    if not yes:
        click.confirm("Cached XP will never be sent. Continue?", abort=True)
    try:
        removed = pulse_cache.clear()
    except CacheError as e:
        _fail(str(e))
    render_cleared(removed)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
