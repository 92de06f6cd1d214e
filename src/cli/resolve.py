"""Resolve an episode identifier from the command line.

Usage::

    python -m src.cli.resolve show-1x1            # every server, as a table
    python -m src.cli.resolve show-1x1 --best     # first working address
    python -m src.cli.resolve show-1x1 --json     # machine-readable output

Runs the same ``SourceService`` the API uses, against a fresh in-memory
cache.  Results go to stdout; log lines go to stderr so ``--json`` output
can be piped straight into ``jq``.

Exit codes: 0 on success, 1 when resolution fails, 2 on bad arguments.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time

from src.models.sources import BestSource, ResolutionResult
from src.utils.errors import NoWorkingSourceError, SourceResolverError

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_text_listing(result: ResolutionResult) -> str:
    lines = [
        f"Episode: {result.identifier}",
        (
            f"Servers: {result.total_count} total, {result.active_count} active, "
            f"{result.failed_count} failed, {result.disabled_count} disabled"
        ),
        "",
    ]
    width = max((len(s.label) for s in result.resolved), default=0)
    for source in result.resolved:
        target = source.address if source.is_playable else (source.detail or "-")
        lines.append(
            f"  {source.label.ljust(width)}  {source.status.value:<8}  "
            f"{source.kind.value:<9}  {target}"
        )
    return "\n".join(lines)


def _format_json_listing(result: ResolutionResult) -> str:
    from src.api.schemas import SourcesResponse

    return json.dumps(SourcesResponse.from_result(result).model_dump(mode="json"), indent=2)


def _format_best(best: BestSource, json_output: bool) -> str:
    if json_output:
        return json.dumps(best.model_dump(mode="json"), indent=2)
    return f"{best.label}: {best.address}"


def _format_failure(exc: SourceResolverError, json_output: bool) -> str:
    causes = exc.causes if isinstance(exc, NoWorkingSourceError) else []
    if json_output:
        return json.dumps(
            {
                "success": False,
                "error": type(exc).__name__,
                "detail": exc.message,
                "causes": causes,
            },
            indent=2,
        )
    lines = [f"Error: {exc}"]
    lines.extend(f"  - {cause}" for cause in causes)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


async def _run(identifier: str, best: bool, json_output: bool, log_level: str) -> int:
    # Deferred import: src.main loads settings and config on import.
    from src.main import build_services, config, settings
    from src.utils.logging import configure_logging

    # Reconfigure after src.main so log lines land on stderr.
    configure_logging(log_level=log_level, stream=sys.stderr)

    services = build_services(settings, config)
    service = services["source_service"]
    start = time.monotonic()
    try:
        if best:
            winner = await service.resolve_best(identifier)
            text = _format_best(winner, json_output)
        else:
            result = await service.resolve_all(identifier)
            text = _format_json_listing(result) if json_output else _format_text_listing(result)
    except SourceResolverError as exc:
        print(_format_failure(exc, json_output), file=sys.stdout if json_output else sys.stderr)
        return 1
    finally:
        await services["http_client"].aclose()

    print(text)
    print(f"Done in {time.monotonic() - start:.1f}s", file=sys.stderr)
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.resolve",
        description="Resolve an episode identifier into playable video addresses.",
    )
    parser.add_argument(
        "identifier",
        type=str,
        help="Episode identifier, e.g. 'show-name-1x1'.",
    )
    parser.add_argument(
        "--best",
        action="store_true",
        help="Print only the first server that resolves (race mode).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output results as JSON.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the resolution and return the exit code."""
    args = _build_parser().parse_args(argv)
    log_level = "WARNING" if (args.quiet or args.json_output) else "INFO"
    return asyncio.run(_run(args.identifier, args.best, args.json_output, log_level))


if __name__ == "__main__":
    sys.exit(main())
