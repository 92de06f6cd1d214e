# =============================================================================
# src/cli/__init__.py: CLI Module Overview
# =============================================================================
#
# Command-line access to the resolver for operators who want to check an
# episode without starting the API server.
#
#   python -m src.cli.resolve <identifier>          # every server + status
#   python -m src.cli.resolve <identifier> --best   # first working address
#
# Architecture Notes:
#   - argparse, not Click/Typer.
#   - src.main is imported inside the runner so --help stays fast.
#   - The CLI builds its own service graph via src.main.build_services and
#     closes the shared httpx client before exiting.
# =============================================================================

"""CLI tools for the source resolver.

- ``python -m src.cli.resolve``: resolve an episode identifier.
"""
