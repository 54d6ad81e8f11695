# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""CLI entrypoint for rendercache.

Usage:
    rendercache render myapp.views:FormalGreeter -p name=Macron
    rendercache render myapp.views:FormalGreeter -p name=Macron --memoized --repeat 3
    rendercache serve myapp.views:FormalGreeter myapp.views:profile_card --port 8080
"""

import importlib
import json
from typing import Any

import typer
import uvicorn

from rendercache import __version__
from rendercache.adapters.config.logging import configure_logging, get_logger, render_context
from rendercache.adapters.config.settings import get_settings
from rendercache.application.component import as_component
from rendercache.application.memo_cache import MemoizationCache
from rendercache.application.memoized_invoker import MemoizedInvoker
from rendercache.domain.errors import RenderCacheError
from rendercache.domain.services import KeyDeriver
from rendercache.domain.value_objects import InputBundle
from rendercache.entrypoints.api_server import build_registry, create_app

app = typer.Typer(
    name="rendercache",
    help="Render components directly or through a memoization cache",
    add_completion=False,
)


def load_target(target: str) -> Any:
    """Import ``module:attribute`` (attribute may be dotted)."""
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise typer.BadParameter(f"expected MODULE:ATTRIBUTE, got {target!r}")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"cannot import {module_name!r}: {e}") from e
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise typer.BadParameter(f"{module_name!r} has no attribute {attr_path!r}") from e
    return obj


def parse_params(params: list[str], json_bundle: str | None = None) -> InputBundle:
    """Build a bundle from a JSON object plus ``key=value`` pairs (pairs win)."""
    values: dict[str, Any] = {}
    if json_bundle:
        try:
            decoded = json.loads(json_bundle)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"--json is not valid JSON: {e}") from e
        if not isinstance(decoded, dict):
            raise typer.BadParameter("--json must be a JSON object")
        values.update(decoded)
    for param in params:
        key, sep, value = param.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got {param!r}")
        values[key] = value
    return InputBundle(values)


@app.command()
def render(
    target: str = typer.Argument(..., help="Component as MODULE:ATTRIBUTE"),
    param: list[str] = typer.Option(
        [],
        "--param",
        "-p",
        help="Input as KEY=VALUE (repeatable)",
    ),
    json_bundle: str = typer.Option(
        None,
        "--json",
        help="Inputs as a JSON object",
    ),
    memoize: bool = typer.Option(
        False,
        "--memoized",
        help="Render through a memoization cache",
    ),
    repeat: int = typer.Option(
        1,
        "--repeat",
        "-n",
        min=1,
        help="Number of invocations (useful with --memoized)",
    ),
    capacity: int = typer.Option(
        None,
        "--capacity",
        help="Cache capacity (default: from settings)",
    ),
) -> None:
    """Render a component once (or N times) and print the output.

    Example:
        $ rendercache render examples.greeter:FormalGreeter -p name=Merkel -p title=Chancellor
    """
    settings = get_settings()
    configure_logging(log_level=settings.server.log_level, json_output=False)

    component = load_target(target)
    bundle = parse_params(param, json_bundle)

    invoker: MemoizedInvoker | None = None
    try:
        if memoize:
            cache = MemoizationCache(
                capacity=settings.cache.capacity if capacity is None else capacity,
                name=target,
            )
            invoker = MemoizedInvoker.for_component(
                component,
                cache=cache,
                key_deriver=KeyDeriver(max_depth=settings.cache.max_key_depth),
            )

        with render_context(component=target, cache=target if invoker is not None else None):
            for _ in range(repeat):
                if invoker is not None:
                    output = invoker.memoized_call(bundle)
                else:
                    output = as_component(component).render(bundle)
                typer.echo(output)
    except RenderCacheError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    if invoker is not None:
        stats = invoker.cache.stats()
        typer.echo(
            f"cache {stats.name}: size={stats.size}/{stats.capacity} "
            f"hits={stats.hits} misses={stats.misses}",
            err=True,
        )


@app.command()
def serve(
    targets: list[str] = typer.Argument(..., help="Components as MODULE:ATTRIBUTE"),
    host: str = typer.Option(
        None,
        "--host",
        "-h",
        help="Server bind address (default: from settings)",
    ),
    port: int = typer.Option(
        None,
        "--port",
        "-p",
        help="Server port (default: from settings)",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (default: from settings)",
    ),
    no_memoize: bool = typer.Option(
        False,
        "--no-memoize",
        help="Serve components on the direct path only",
    ),
) -> None:
    """Serve components over HTTP at /components/{name}.

    Example:
        $ rendercache serve examples.greeter:FormalGreeter --port 8080
        $ curl 'localhost:8080/components/FormalGreeter?name=Macron'
    """
    settings = get_settings()

    final_host = host or settings.server.host
    final_port = port or settings.server.port
    final_log_level = (log_level or settings.server.log_level).upper()
    final_memoize = settings.cache.memoize_by_default and not no_memoize
    settings.server.log_level = final_log_level  # type: ignore[assignment]

    registry = build_registry(settings)
    for target in targets:
        name = target.rpartition(":")[2].rpartition(".")[2]
        registry.register(name, load_target(target), memoize=final_memoize)

    fastapi_app = create_app(registry, settings)

    get_logger(__name__).info(
        "serving_components",
        components=registry.names(),
        host=final_host,
        port=final_port,
        memoized=final_memoize,
    )
    uvicorn.run(
        fastapi_app,
        host=final_host,
        port=final_port,
        log_level=final_log_level.lower(),
        access_log=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"rendercache v{__version__}")


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = get_settings()

    typer.echo("=" * 60)
    typer.echo("rendercache - Configuration")
    typer.echo("=" * 60)
    typer.echo()
    typer.echo("[Server]")
    typer.echo(f"  Host: {settings.server.host}")
    typer.echo(f"  Port: {settings.server.port}")
    typer.echo(f"  Log level: {settings.server.log_level}")
    typer.echo(f"  JSON logs: {settings.server.json_logs}")
    typer.echo()
    typer.echo("[Cache]")
    typer.echo(f"  Capacity: {settings.cache.capacity}")
    typer.echo(f"  Max key depth: {settings.cache.max_key_depth}")
    typer.echo(f"  Memoize by default: {settings.cache.memoize_by_default}")
    typer.echo("=" * 60)


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
