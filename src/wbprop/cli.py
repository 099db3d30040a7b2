"""Command line interface for :mod:`wbprop`."""

import asyncio
import json
import sys
import time
from typing import Optional

import click

from .config.settings import Config
from .errors import AuthenticationRequiredError, SparqlClientError
from .query import get_bindings, to_query_result
from .service import QueryService

__all__ = [
    "main",
]


def _service(ctx: click.Context) -> QueryService:
    obj = ctx.ensure_object(dict)
    if "service" not in obj:
        obj["service"] = QueryService.from_config(obj.get("config", Config))
    return obj["service"]


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--database",
    envvar="WBPROP_DATABASE_PATH",
    help="SQLite file holding the persisted query cache",
)
@click.option(
    "--instances-file",
    envvar="WBPROP_INSTANCES_FILE",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with additional instances",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    database: Optional[str],
    instances_file: Optional[str],
) -> None:
    r"""wbprop - cached SPARQL queries for Wikibase instances.

    Run queries against configured SPARQL endpoints, sharing a persisted
    result cache between runs.


    Typical workflow: instances > query > cache stats
    """
    import logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    overrides = {}
    if database:
        overrides["DATABASE_PATH"] = database
    if instances_file:
        overrides["INSTANCES_FILE"] = instances_file
    ctx.obj.setdefault(
        "config", type("CliConfig", (Config,), overrides) if overrides else Config,
    )

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )
        logging.getLogger("wbprop").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s", force=True)


@main.command()
@click.pass_context
def instances(ctx: click.Context) -> None:
    """List the configured SPARQL instances."""
    service = _service(ctx)
    for instance in service.catalog:
        flags = []
        if instance.requires_authentication:
            flags.append("cookie auth" if instance.cookie_based_auth else "unavailable")
        suffix = f"  [{', '.join(flags)}]" if flags else ""
        click.echo(f"{instance.id:<12} {instance.name:<20} {instance.sparql_endpoint}{suffix}")


@main.command()
@click.argument("instance")
@click.argument("query_file", type=click.File("r"), default="-")
@click.option("--fresh", is_flag=True, help="Bypass cached results")
@click.option("--raw", is_flag=True, help="Print the SPARQL JSON results document")
@click.pass_context
def query(ctx: click.Context, instance: str, query_file, fresh: bool, raw: bool) -> None:
    """Run a SPARQL query against INSTANCE.

    The query is read from QUERY_FILE, or from standard input.


    Example:
      echo 'SELECT ?p WHERE { ?p a wikibase:Property } LIMIT 5' | wbprop query wikidata
    """
    service = _service(ctx)
    sparql = query_file.read()
    if not sparql.strip():
        raise click.UsageError("Empty query")

    cached = not fresh and service.is_cached(instance, sparql)
    t0 = time.monotonic()
    try:
        if fresh:
            payload = asyncio.run(service.query_fresh(instance, sparql))
        else:
            payload = asyncio.run(service.query(instance, sparql))
    except AuthenticationRequiredError as e:
        click.echo(f"Error: {e}", err=True)
        if e.auth_url:
            click.echo(f"Log in at: {e.auth_url}", err=True)
        raise click.Abort()
    except SparqlClientError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()
    finally:
        service.close()
    duration_ms = int((time.monotonic() - t0) * 1000)

    if raw:
        json.dump(payload, sys.stdout, indent=2)
        click.echo()
        return

    result = to_query_result(
        payload, query=sparql, instance=instance,
        duration_ms=duration_ms, cached=cached,
    )
    rows = get_bindings(payload)
    click.echo("\t".join(result.variables))
    click.echo("=" * 60)
    for row in rows:
        click.echo("\t".join(row.get(var, "") for var in result.variables))
    source = "cache" if cached else f"{duration_ms} ms"
    click.echo(f"\n{result.row_count} rows ({source})")


@main.group()
def cache() -> None:
    """Inspect and manage the persisted query cache."""


@cache.command("stats")
@click.pass_context
def cache_stats(ctx: click.Context) -> None:
    """Show cache size and limits."""
    stats = _service(ctx).get_stats()
    click.echo(f"Entries: {stats.entries}/{stats.max_entries}")
    click.echo(f"TTL: {stats.ttl_ms / 1000:.0f}s")


@cache.command("clear")
@click.pass_context
def cache_clear(ctx: click.Context) -> None:
    """Remove every cached result."""
    _service(ctx).clear()
    click.echo("Cache cleared")


@cache.command("invalidate")
@click.argument("instance")
@click.pass_context
def cache_invalidate(ctx: click.Context, instance: str) -> None:
    """Remove cached results for INSTANCE."""
    service = _service(ctx)
    before = service.get_stats().entries
    service.invalidate_instance(instance)
    removed = before - service.get_stats().entries
    click.echo(f"Removed {removed} cached results for {instance}")


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=5000, show_default=True, type=int)
@click.option("--debug", is_flag=True, help="Run Flask in debug mode")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, debug: bool) -> None:
    """Run the JSON query API used by the dashboard."""
    from .backend.app import create_app
    from .backend.config import Config as BackendConfig

    overrides = {
        name: getattr(ctx.obj["config"], name)
        for name in ("DATABASE_PATH", "INSTANCES_FILE")
    }
    app = create_app(type("ServeConfig", (BackendConfig,), overrides))
    click.echo(f"Serving wbprop API on http://{host}:{port}")
    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
