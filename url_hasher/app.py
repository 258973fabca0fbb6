"""Typer CLI entrypoint for url-hasher."""

from __future__ import annotations

import asyncio
from typing import Annotated, List, NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from .config import DEFAULT_ALGORITHM, DEFAULT_PARALLEL, HasherSettings
from .engine import Hasher, Scope, Status
from .errors import FetchError
from .logging_conf import configure_logging
from .signals import cancel_on_signals
from .ui import ProgressReporter
from .urls import normalize_urls

app = typer.Typer(
    help="Fetch URLs concurrently and print a digest of every response body.",
    add_completion=False,
    rich_markup_mode=None,
)

err_console = Console(stderr=True, highlight=False)


class OptionValueError(typer.BadParameter):
    """Bad option value; exits with 1 like every other usage error."""

    exit_code = 1


def _parse_parallel(value: str) -> int:
    try:
        parallel = int(value)
    except ValueError:
        raise OptionValueError(f"{value!r} is not a valid integer.") from None
    if parallel <= 0:
        raise OptionValueError(f"{parallel} is not >= 1.")
    return parallel


def _parse_timeout(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise OptionValueError(f"{value!r} is not a valid number.") from None


def _usage_error(ctx: typer.Context, message: str) -> NoReturn:
    typer.echo(ctx.get_usage(), err=True)
    err_console.print(message, style="red", markup=False, soft_wrap=True)
    raise typer.Exit(code=1)


def _make_on_done(reporter: ProgressReporter):
    def _on_done(_scope: Scope, url: str, digest: bytes | None, error: FetchError | None) -> None:
        reporter.advance(success=error is None, current_url=url)
        if error is not None:
            err_console.print(
                f"Error, could not fetch url ({url}): {error}", markup=False, soft_wrap=True
            )
            return
        typer.echo(f"{url} {digest.hex()}")  # type: ignore[union-attr]

    return _on_done


async def _run(hasher: Hasher, urls: list[str]) -> Status:
    scope = Scope()
    with cancel_on_signals(scope):
        return await hasher.run(scope, urls)


@app.command()
def main(
    ctx: typer.Context,
    urls: Annotated[
        Optional[List[str]], typer.Argument(help="URLs to fetch; http:// is assumed when missing.")
    ] = None,
    parallel: Annotated[
        int,
        typer.Option(
            "--parallel", "-p", parser=_parse_parallel, help="Maximum number of parallel workers"
        ),
    ] = DEFAULT_PARALLEL,
    timeout: Annotated[
        float,
        typer.Option(
            "--timeout", "-t", parser=_parse_timeout, help="Per-URL timeout in seconds (0 = 60s)"
        ),
    ] = 0.0,
    algorithm: Annotated[
        str, typer.Option("--algorithm", "-a", help="hashlib digest algorithm")
    ] = DEFAULT_ALGORITHM,
    progress: Annotated[
        bool, typer.Option("--progress/--no-progress", help="Show a progress bar on stderr")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logs")] = False,
) -> None:
    try:
        settings = HasherSettings(parallel=parallel, fetch_timeout=timeout, algorithm=algorithm)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        _usage_error(ctx, f"Invalid settings: {problems}")

    logger = configure_logging(verbose=verbose).bind(component="cli")
    targets = normalize_urls(urls or [])
    reporter = ProgressReporter(enabled=progress)
    reporter.start(len(targets))
    hasher = Hasher(
        on_done=_make_on_done(reporter),
        parallel=settings.parallel,
        fetch_timeout=settings.fetch_timeout,
        algorithm=settings.algorithm,
        logger=logger,
    )
    try:
        status = asyncio.run(_run(hasher, targets))
    except Exception as exc:  # noqa: BLE001
        logger.exception("hasher_failed", error=str(exc))
        raise typer.Exit(code=1) from exc
    finally:
        reporter.close()

    if status is not Status.COMPLETED:
        logger.info("hasher_stopped", status=status.value, **reporter.summary())


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
