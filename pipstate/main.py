"""
pipstate — CLI entrypoint.

Usage:
    pipstate --help
    pipstate directive requests --ensure latest --proxy http://proxy:3128
    pipstate plan --json
    pipstate apply --dry-run
    pipstate facts pip_version
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from pipstate import __version__
from pipstate.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    LOG_LEVEL_ENV,
    setup_logging,
)


def _print_directive(directive, quiet: bool = False) -> None:
    click.secho(f"▸ {directive.name}", fg="cyan", bold=True)
    click.echo(f"   command: {directive.command}")
    click.echo(f"   {directive.guard.kind.value}: {directive.guard.expression}")
    if not quiet:
        click.echo(f"   cwd:     {directive.working_dir}")
        click.echo(f"   path:    {directive.path_env}")


def _fail(message: str, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps({"error": message}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="pipstate")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to pipstate.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """pipstate — idempotent pip install directives."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get(LOG_LEVEL_ENV, "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )


@cli.command()
@click.argument("name")
@click.option("--ensure", default="present", show_default=True,
              help="present, absent, latest or a version.")
@click.option("--provider", default="pip", show_default=True,
              help="pip, pip3 or an absolute path to pip.")
@click.option("--proxy", default=None, help="Proxy URL passed to pip.")
@click.option("--index", default=None, help="Package index URL.")
@click.option("--extra", "extras", multiple=True, help="Extra to install (repeatable).")
@click.option("--virtualenv", default=None, help="Absolute path of the target virtualenv.")
@click.option("--log-path", default=None, help="pip log file.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def directive(
    ctx: click.Context,
    name: str,
    ensure: str,
    provider: str,
    proxy: str | None,
    index: str | None,
    extras: tuple[str, ...],
    virtualenv: str | None,
    log_path: str | None,
    as_json: bool,
) -> None:
    """Synthesize the install directive for one package."""
    from pydantic import ValidationError

    from pipstate.core.config.loader import ConfigError
    from pipstate.core.models.request import RequestSpec
    from pipstate.core.services.install import build_directive

    try:
        request = RequestSpec(
            name=name,
            ensure=ensure,
            provider=provider,
            proxy=proxy,
            index=index,
            extras=extras,
            virtualenv=virtualenv,
            log_path=log_path,
        )
        result = build_directive(request)
    except (ConfigError, ValidationError) as e:
        _fail(str(e), as_json)
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return
    _print_directive(result, quiet=ctx.obj.get("quiet", False))


@cli.command()
@click.argument("path")
@click.option("--ensure", default="present", show_default=True, help="present or absent.")
@click.option("--version", "python_version", default="3", show_default=True,
              help="Python version, e.g. 3.8.")
@click.option("--system-site-packages", is_flag=True, help="Give access to system packages.")
@click.option("--pip-version", default=None, help="Pin pip inside the environment.")
@click.option("--setuptools-version", default=None, help="Pin setuptools inside the environment.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def venv(
    ctx: click.Context,
    path: str,
    ensure: str,
    python_version: str,
    system_site_packages: bool,
    pip_version: str | None,
    setuptools_version: str | None,
    as_json: bool,
) -> None:
    """Synthesize the directive creating (or removing) a virtualenv."""
    from pydantic import ValidationError

    from pipstate.core.config.loader import ConfigError
    from pipstate.core.models.request import VenvRequest
    from pipstate.core.services.install import build_venv_directive

    try:
        request = VenvRequest(
            path=path,
            ensure=ensure,
            version=python_version,
            system_site_packages=system_site_packages,
            pip_version=pip_version,
            setuptools_version=setuptools_version,
        )
        result = build_venv_directive(request)
    except (ConfigError, ValidationError) as e:
        _fail(str(e), as_json)
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return
    _print_directive(result, quiet=ctx.obj.get("quiet", False))


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool) -> None:
    """Show every directive the manifest asks for."""
    from pipstate.core.use_cases.plan import plan_manifest

    result = plan_manifest(ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        _fail(result.error, as_json=False)
        return

    if not result.directives:
        click.secho("⚠️  Nothing declared", fg="yellow")
        return

    quiet = ctx.obj.get("quiet", False)
    for d in result.directives:
        _print_directive(d, quiet=quiet)


@cli.command()
@click.option("--dry-run", is_flag=True, help="Evaluate guards but run nothing.")
@click.option("--mock", is_flag=True, help="Use the mock executor (touches nothing).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def apply(ctx: click.Context, dry_run: bool, mock: bool, as_json: bool) -> None:
    """Apply the manifest: run every directive whose guard allows it."""
    from pipstate.adapters import AdapterRegistry, MockAdapter, ShellCommandAdapter
    from pipstate.core.engine.executor import (
        build_actions,
        execute_plan,
        generate_operation_id,
    )
    from pipstate.core.use_cases.plan import plan_manifest

    result = plan_manifest(ctx.obj.get("config_path"))
    if result.error:
        _fail(result.error, as_json)
        return

    registry = AdapterRegistry(mock_adapter=MockAdapter() if mock else None)
    registry.register(ShellCommandAdapter())

    execution = build_actions(result.directives, generate_operation_id())
    report = execute_plan(execution, registry, dry_run=dry_run)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        for receipt in report.receipts:
            if receipt.ok:
                click.secho(f"   ✅ {receipt.action_id}", fg="green")
            elif receipt.skipped:
                click.echo(f"   ⊘ {receipt.action_id}: {receipt.output}")
            else:
                click.secho(f"   ❌ {receipt.action_id}: {receipt.error}", fg="red")
        click.echo(
            f"\n{report.succeeded} applied, {report.skipped} skipped, "
            f"{report.failed} failed ({report.status})"
        )

    if not report.all_ok:
        sys.exit(1)


@cli.command()
@click.argument("names", nargs=-1)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def facts(names: tuple[str, ...], as_json: bool) -> None:
    """Resolve pip version facts (default: all of them)."""
    from pipstate.adapters import ShellCommandAdapter
    from pipstate.core.services.facts import default_resolver

    resolver = default_resolver(ShellCommandAdapter())
    wanted = list(names) or resolver.fact_names()
    unknown = [n for n in wanted if n not in resolver.fact_names()]
    if unknown:
        _fail(f"Unknown fact(s): {', '.join(unknown)}", as_json)
        return

    resolved = {n: resolver.resolve(n) for n in wanted}

    if as_json:
        click.echo(json.dumps({n: f.value for n, f in resolved.items()}, indent=2))
        return
    for name, fact in resolved.items():
        value = fact.value if fact.known else "unknown"
        source = f"  ({fact.source})" if fact.source else ""
        click.echo(f"{name} => {value}{source}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
