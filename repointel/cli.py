"""CLI entry point: repointel.

Subcommands:
    repointel scan REF...                              # scan and list dependencies
    repointel compare GROUP:ARTIFACT REF...            # highest version per repo
    repointel drift GROUP:ARTIFACT MIN_VERSION REF...  # repos below a threshold
    repointel matrix G:A[,G:A...] REF...               # several artifacts at once
    repointel versions PACKAGE REF... [--target V]     # matches / older / newer
    repointel search KEYWORD REF...                    # substring search

REF is a local checkout path or a git URL (``https://token@host/org/repo.git``
is accepted; the token never appears in output).
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from repointel.core.config import Settings, load_settings
from repointel.core.logging import setup_logging
from repointel.engines.comparison.engine import ComparisonEngine, parse_coordinate
from repointel.engines.comparison.models import ArtifactVersion
from repointel.engines.dependency_scanner.acquirer import build_acquirer
from repointel.engines.dependency_scanner.models import ExtractedSet
from repointel.engines.dependency_scanner.scanner import RepositoryScanner
from repointel.engines.dependency_scanner.store import ScanStore


async def _scan(references: tuple[str, ...], settings: Settings, ref: str | None) -> ScanStore:
    store = ScanStore()
    acquirer = build_acquirer(settings, ref)
    scanner = RepositoryScanner(
        store,
        acquirer,
        concurrency=settings.scan_concurrency,
        acquire_timeout=settings.acquire_timeout,
    )
    try:
        await scanner.scan_many(references)
    finally:
        await acquirer.close()
    return store


def _scan_refs(ctx: click.Context, references: tuple[str, ...]) -> ScanStore:
    settings: Settings = ctx.obj["settings"]
    store = asyncio.run(_scan(references, settings, ctx.obj["ref"]))
    for name, result in store.items():
        if not result.success:
            click.echo(f"warning: {name}: scan failed: {result.error}", err=True)
    return store


def _result_to_dict(result: ExtractedSet) -> dict:
    return {
        "repo": result.repo_name,
        "reference": result.reference,
        "success": result.success,
        "error": result.error,
        "toolchain_version": result.toolchain_version,
        "descriptor_count": result.descriptor_count,
        "dependencies": [
            {
                "group_id": r.group_id,
                "artifact_id": r.artifact_id,
                "version": r.version,
                "scope": r.scope,
            }
            for r in result.records
        ],
    }


def _labels(row: dict[str, ArtifactVersion]) -> dict[str, str]:
    return {name: found.label for name, found in row.items()}


def _require_coordinate(value: str) -> tuple[str, str]:
    parsed = parse_coordinate(value)
    if parsed is None:
        raise click.BadParameter(f"expected GROUP:ARTIFACT, got {value!r}")
    return parsed


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option("--log-format", type=click.Choice(["console", "json"]), default=None)
@click.option("--ref", default=None, help="Branch or tag to clone (default: remote default)")
@click.pass_context
def main(ctx: click.Context, verbose: bool, log_format: str | None, ref: str | None) -> None:
    """repointel: compare declared Maven dependencies across repositories."""
    setup_logging(level="DEBUG" if verbose else None, fmt=log_format)
    try:
        settings = load_settings()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    ctx.obj = {"settings": settings, "ref": ref}


@main.command("scan")
@click.argument("references", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def scan_cmd(ctx: click.Context, references: tuple[str, ...], as_json: bool) -> None:
    """Scan repositories and print their resolved dependencies."""
    store = _scan_refs(ctx, references)
    results = [result for _, result in store.items()]

    if as_json:
        click.echo(json.dumps([_result_to_dict(r) for r in results], indent=2))
    else:
        for result in results:
            if not result.success:
                click.echo(f"{result.repo_name}: FAILED ({result.error})\n")
                continue
            click.echo(
                f"{result.repo_name}: {len(result.records)} dependencies in "
                f"{result.descriptor_count} descriptor(s), JDK {result.toolchain_version}"
            )
            for r in result.records:
                scope = f" [{r.scope}]" if r.scope else ""
                click.echo(f"    {r.coordinate} {r.version or '?'}{scope}")
            click.echo()

    if not any(r.success for r in results):
        sys.exit(1)


@main.command("compare")
@click.argument("coordinate")
@click.argument("references", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def compare_cmd(
    ctx: click.Context, coordinate: str, references: tuple[str, ...], as_json: bool
) -> None:
    """Highest version of GROUP:ARTIFACT in each repository."""
    group, artifact = _require_coordinate(coordinate)
    engine = ComparisonEngine(_scan_refs(ctx, references))
    row = _labels(engine.compare_single(group, artifact))
    if as_json:
        click.echo(json.dumps(row, indent=2))
        return
    for name, label in row.items():
        click.echo(f"  {name}: {label}")


@main.command("drift")
@click.argument("coordinate")
@click.argument("min_version")
@click.argument("references", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def drift_cmd(
    ctx: click.Context,
    coordinate: str,
    min_version: str,
    references: tuple[str, ...],
    as_json: bool,
) -> None:
    """Repositories missing GROUP:ARTIFACT or declaring it below MIN_VERSION."""
    group, artifact = _require_coordinate(coordinate)
    engine = ComparisonEngine(_scan_refs(ctx, references))
    row = _labels(engine.drift(group, artifact, min_version))
    if as_json:
        click.echo(json.dumps(row, indent=2))
        return
    if not row:
        click.echo(f"No drift: every repository has {coordinate} >= {min_version}")
        return
    for name, label in row.items():
        click.echo(f"  {name}: {label}")


@main.command("matrix")
@click.argument("coordinates")
@click.argument("references", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def matrix_cmd(
    ctx: click.Context, coordinates: str, references: tuple[str, ...], as_json: bool
) -> None:
    """Versions of several comma-separated coordinates across repositories."""
    engine = ComparisonEngine(_scan_refs(ctx, references))
    matrix = {
        coord: _labels(row) for coord, row in engine.matrix(coordinates.split(",")).items()
    }
    if as_json:
        click.echo(json.dumps(matrix, indent=2))
        return
    for coord, row in matrix.items():
        click.echo(coord)
        for name, label in row.items():
            click.echo(f"  {name}: {label}")


@main.command("versions")
@click.argument("package")
@click.argument("references", nargs=-1, required=True)
@click.option("--target", default=None, help="Version to classify repositories against")
@click.pass_context
def versions_cmd(
    ctx: click.Context, package: str, references: tuple[str, ...], target: str | None
) -> None:
    """Classify repositories as matching, older or newer than --target."""
    engine = ComparisonEngine(_scan_refs(ctx, references))
    result = engine.compare_versions(package, target)
    for status in result.repo_statuses:
        click.echo(f"  {status.repo_name}: {status.status.value} {status.message}")
    click.echo(result.summary.text)


@main.command("search")
@click.argument("keyword")
@click.argument("references", nargs=-1, required=True)
@click.pass_context
def search_cmd(ctx: click.Context, keyword: str, references: tuple[str, ...]) -> None:
    """Dependencies whose group or artifact contains KEYWORD."""
    engine = ComparisonEngine(_scan_refs(ctx, references))
    for name, records in engine.search(keyword).items():
        click.echo(f"{name}: {len(records)} match(es)")
        for r in records:
            click.echo(f"    {r.coordinate} {r.version or '?'}")


if __name__ == "__main__":
    main()
