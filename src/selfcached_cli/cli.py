from __future__ import annotations

import logging
from pathlib import Path

import typer

from selfcached import CacheConfig, build_config, resolve_cache_entry, resolve_local
from selfcached.config import parse_bool
from selfcached.paths import ResolvedPath, find_name_conflict
from selfcached.state import CacheState, load_state, parse_path_input, save_state
from selfcached.storage import ArchiveError, restore, store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

CACHE_HIT_OUTPUT = "cache-hit"

app = typer.Typer(help="selfcached: store and restore paths in a local cache directory")


@app.command("restore")
def restore_command(
    path: list[str] | None = typer.Option(
        None,
        "--path",
        "-p",
        help="Path to restore. Repeat for multiple paths.",
    ),
    paths_text: str | None = typer.Option(
        None,
        "--paths",
        help="Newline separated list of paths.",
    ),
    key: str = typer.Option("", "--key", "-k", help="Cache key."),
    directory: str | None = typer.Option(
        None,
        "--dir",
        help="Cache root directory. Defaults to $SELF_CACHED_DIR, $RUNNER_TOOL_CACHE or ~/.self-cached.",
    ),
    compress: str | None = typer.Option(
        None,
        "--compress",
        help="Store entries as tar archives (true/false).",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Optional JSON/YAML config file.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    max_concurrency: int | None = typer.Option(
        None,
        "--max-concurrency",
        min=1,
        help="Maximum number of paths processed at once.",
    ),
    state_file: Path | None = typer.Option(
        None,
        "--state-file",
        help="Where to save inputs for the later store step.",
    ),
    output_file: Path | None = typer.Option(
        None,
        "--output-file",
        envvar="GITHUB_OUTPUT",
        help="File to append the cache-hit output to.",
    ),
) -> None:
    """Restore cached paths. A miss is not an error."""
    input_paths = _collect_paths(path, paths_text)
    if not input_paths or not key.strip():
        typer.echo("missing inputs, skipping cache restore")
        return

    config = _load_cli_config(
        directory=directory,
        compress=compress,
        max_concurrency=max_concurrency,
        config_path=config_path,
    )

    if state_file is not None:
        save_state(
            state_file,
            CacheState(
                key=key,
                directory=config.directory,
                paths=input_paths,
                compress=config.compress,
            ),
        )

    try:
        is_restored = restore(
            input_paths,
            key,
            config.directory,
            config.compress,
            max_concurrency=config.max_concurrency,
        )
    except (ArchiveError, OSError) as exc:
        typer.echo(f"restore failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    hit = "true" if is_restored else "false"
    if output_file is not None:
        with output_file.open("a", encoding="utf-8") as handle:
            handle.write(f"{CACHE_HIT_OUTPUT}={hit}\n")

    if is_restored:
        logging.info("cache restored from %s/%s", config.directory, key)
    else:
        logging.info("no cache found for key=%s", key)
    typer.echo(f"{CACHE_HIT_OUTPUT}={hit}")


@app.command("store")
def store_command(
    state_file: Path | None = typer.Option(
        None,
        "--state-file",
        help="State saved by the restore step.",
    ),
    path: list[str] | None = typer.Option(
        None,
        "--path",
        "-p",
        help="Path to store. Overrides the state file.",
    ),
    paths_text: str | None = typer.Option(
        None,
        "--paths",
        help="Newline separated list of paths.",
    ),
    key: str | None = typer.Option(None, "--key", "-k", help="Cache key."),
    directory: str | None = typer.Option(None, "--dir", help="Cache root directory."),
    compress: str | None = typer.Option(
        None,
        "--compress",
        help="Store entries as tar archives (true/false).",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Optional JSON/YAML config file.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    max_concurrency: int | None = typer.Option(
        None,
        "--max-concurrency",
        min=1,
        help="Maximum number of paths processed at once.",
    ),
) -> None:
    """Store paths into the cache unless a complete cache already exists."""
    try:
        state = load_state(state_file) if state_file is not None else None
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    input_paths = _collect_paths(path, paths_text) or (state.paths if state else [])
    cache_key = key or (state.key if state else "")
    if directory is None and state is not None:
        directory = state.directory
    compress_value: str | bool | None = compress
    if compress_value is None and state is not None:
        compress_value = state.compress

    if not input_paths or not cache_key.strip():
        typer.echo("missing state inputs, skipping cache store")
        return

    config = _load_cli_config(
        directory=directory,
        compress=compress_value,
        max_concurrency=max_concurrency,
        config_path=config_path,
    )

    try:
        is_stored = store(
            input_paths,
            cache_key,
            config.directory,
            config.compress,
            max_concurrency=config.max_concurrency,
        )
    except (ArchiveError, OSError) as exc:
        typer.echo(f"store failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if not is_stored:
        typer.echo(f"store aborted for key={cache_key}, see log for details", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"stored key={cache_key} paths={len(input_paths)} dir={config.directory}")


@app.command("inspect")
def inspect_command(
    path: list[str] | None = typer.Option(None, "--path", "-p", help="Path to inspect."),
    paths_text: str | None = typer.Option(
        None,
        "--paths",
        help="Newline separated list of paths.",
    ),
    key: str = typer.Option(..., "--key", "-k", help="Cache key."),
    directory: str | None = typer.Option(None, "--dir", help="Cache root directory."),
    compress: str | None = typer.Option(
        None,
        "--compress",
        help="Look for tar archive entries (true/false).",
    ),
) -> None:
    """Show how paths map to cache entries without changing anything."""
    input_paths = _collect_paths(path, paths_text)
    if not input_paths:
        typer.echo("no paths given", err=True)
        raise typer.Exit(code=1)

    config = _load_cli_config(directory=directory, compress=compress)
    resolved = [resolve_local(input_path) for input_path in input_paths]
    typer.echo(_render_inspect_table(resolved, key=key, config=config))

    conflict = find_name_conflict(resolved)
    if conflict is not None:
        first, second = conflict
        typer.echo(f"conflict: {first.input!r} and {second.input!r} share name {first.cache_name}")


def _collect_paths(paths: list[str] | None, paths_text: str | None) -> list[str]:
    collected = [item.strip() for item in paths or [] if item.strip()]
    collected.extend(parse_path_input(paths_text))
    return collected


def _load_cli_config(
    *,
    directory: str | None,
    compress: str | bool | None,
    max_concurrency: int | None = None,
    config_path: Path | None = None,
) -> CacheConfig:
    try:
        if isinstance(compress, str):
            compress = parse_bool(compress)
        return build_config(
            directory=directory,
            compress=compress,
            max_concurrency=max_concurrency,
            config_path=config_path,
        )
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _render_inspect_table(
    resolved: list[ResolvedPath],
    *,
    key: str,
    config: CacheConfig,
) -> str:
    headers = ("input", "name", "local", "entry", "cached")
    rows = []
    for item in resolved:
        entry = resolve_cache_entry(config.directory, item.cache_name, key, config.compress)
        rows.append(
            (
                item.input,
                _truncate(item.cache_name, limit=48),
                "yes" if item.is_accessible else "no",
                _truncate(entry.path, limit=72),
                "yes" if entry.is_accessible else "no",
            )
        )

    widths = [
        max(len(headers[column]), *(len(row[column]) for row in rows))
        for column in range(len(headers))
    ]

    def _line(values: tuple[str, ...]) -> str:
        return " | ".join(
            value.ljust(widths[index]) for index, value in enumerate(values)
        )

    divider = "-+-".join("-" * width for width in widths)
    body = [_line(headers), divider]
    body.extend(_line(row) for row in rows)
    return "\n".join(body)


def _truncate(text: str, *, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[: limit - 3]}..."


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
