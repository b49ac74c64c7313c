# =============================================================================
# docqa/cli/__init__.py: CLI Module Overview
# =============================================================================
#
# Command-line access to the document Q&A services for operators and
# developers working outside the HTTP API.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - Heavy imports (providers, vector store) are deferred inside functions
#     so `--help` stays fast.
#   - Services are built through docqa.main.build_services, the same
#     assembly the web app uses, so both share configuration and storage.
# =============================================================================

"""CLI tools for docqa.

- ``python -m docqa.cli``: upload, ingest, ask, list and delete.
"""
