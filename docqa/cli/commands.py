# =============================================================================
# docqa/cli/commands.py: Document Q&A from the command line
# =============================================================================
#
# Drives the same services as the HTTP API without starting a web server.
# Every command is scoped to one owner id, exactly as the API is.
#
# Supported subcommands:
#
#   upload : Admit a local file (size, type, quota and dedup checks apply)
#   ingest : Chunk and embed a previously uploaded file
#   ask    : Ask a question answered only from the owner's files
#   list   : List the owner's uploaded files
#   delete : Delete a file's row, chunks and stored bytes
#
# Usage examples:
#   python -m docqa.cli upload --owner alice ./handbook.pdf
#   python -m docqa.cli ingest --owner alice 3f2a...e9
#   python -m docqa.cli ask --owner alice "What is the refund window?"
#   python -m docqa.cli list --owner alice
#   python -m docqa.cli delete --owner alice 3f2a...e9
# =============================================================================

"""Standalone CLI for uploading, ingesting and querying documents.

Usage::

    python -m docqa.cli upload --owner alice ./handbook.pdf
    python -m docqa.cli ingest --owner alice <file_hash>
    python -m docqa.cli ask --owner alice "What is the refund window?"
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import Any

from docqa.utils.errors import DocQAError

# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_upload(args: argparse.Namespace, services: dict[str, Any]) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    content_type, _ = mimetypes.guess_type(path.name)
    result = await services["ingestion_gate"].admit(
        path.read_bytes(),
        file_name=path.name,
        owner_id=args.owner,
        content_type=content_type,
    )

    label = "Already uploaded" if result.duplicate else "Uploaded"
    print(f"{label}: {path.name}")
    print(f"  File ID:   {result.file_id}")
    print(f"  File hash: {result.file_hash}")
    return 0


async def _handle_ingest(args: argparse.Namespace, services: dict[str, Any]) -> int:
    print(f"Ingesting {args.file_hash} for owner '{args.owner}'")
    result = await services["ingestion_service"].ingest(args.file_hash, args.owner)

    if result.existing:
        print(f"\nAlready ingested ({result.chunks_processed} chunks); nothing written.")
        return 0

    print("\nIngestion complete:")
    print(f"  Chunks:  {result.chunks_processed}")
    print(f"  Batches: {result.batches_written}")
    print(f"  Time:    {result.ingestion_time:.2f}s")
    return 0


async def _handle_ask(args: argparse.Namespace, services: dict[str, Any]) -> int:
    result = await services["answer_composer"].answer(args.question, args.owner)

    print(result.answer)
    if args.show_context:
        print("\nContext")
        print("=" * 40)
        for retrieved in result.context:
            meta = retrieved.chunk.metadata
            print(
                f"[{retrieved.similarity_score:.3f}] "
                f"{meta.file_hash[:12]} #{meta.sequence_id}"
            )
            print(f"  {retrieved.chunk.content[:200]!r}")
    return 0


async def _handle_list(args: argparse.Namespace, services: dict[str, Any]) -> int:
    files = await services["file_service"].list_files(args.owner)
    if not files:
        print(f"No files for owner '{args.owner}'.")
        return 0

    print(f"Files for owner '{args.owner}'")
    print("=" * 40)
    for record in files:
        print(
            f"  {record.file_hash}  {record.size_bytes:>9} B  "
            f"{record.created_at:%Y-%m-%d %H:%M}  {record.file_name}"
        )
    return 0


async def _handle_delete(args: argparse.Namespace, services: dict[str, Any]) -> int:
    result = await services["file_service"].delete_file(args.file_hash, args.owner)

    if result.file is None and result.chunks_deleted == 0 and not result.object_deleted:
        print(f"Nothing to delete for {args.file_hash}.")
    else:
        print(f"Deleted {args.file_hash}:")
        print(f"  Row:     {'yes' if result.file is not None else 'no'}")
        print(f"  Chunks:  {result.chunks_deleted}")
        print(f"  Object:  {'yes' if result.object_deleted else 'no'}")

    if result.failed_steps:
        print(f"  Failed steps: {', '.join(result.failed_steps)}", file=sys.stderr)
        return 1
    return 0


_HANDLERS = {
    "upload": _handle_upload,
    "ingest": _handle_ingest,
    "ask": _handle_ask,
    "list": _handle_list,
    "delete": _handle_delete,
}


async def _run(args: argparse.Namespace) -> int:
    """Build services, then dispatch to the subcommand's handler."""
    # Deferred: importing main wires every provider.
    from docqa.main import build_services

    services = await build_services()
    try:
        return await _HANDLERS[args.command](args, services)
    except DocQAError as exc:
        print(f"Error ({type(exc).__name__}): {exc.message}", file=sys.stderr)
        return 1


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the docqa CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m docqa.cli",
        description="Upload documents and ask questions answered from them.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- upload --
    upload_parser = subparsers.add_parser("upload", help="Upload a document")
    upload_parser.add_argument("--owner", required=True, help="Owner id")
    upload_parser.add_argument("file", help="Path to the document")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Chunk and embed an uploaded document")
    ingest_parser.add_argument("--owner", required=True, help="Owner id")
    ingest_parser.add_argument("file_hash", help="sha256 digest returned by upload")

    # -- ask --
    ask_parser = subparsers.add_parser("ask", help="Ask a question over your documents")
    ask_parser.add_argument("--owner", required=True, help="Owner id")
    ask_parser.add_argument("question", help="Question text")
    ask_parser.add_argument(
        "--show-context",
        action="store_true",
        dest="show_context",
        help="Print the retrieved chunks after the answer",
    )

    # -- list --
    list_parser = subparsers.add_parser("list", help="List your uploaded documents")
    list_parser.add_argument("--owner", required=True, help="Owner id")

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete a document")
    delete_parser.add_argument("--owner", required=True, help="Owner id")
    delete_parser.add_argument("file_hash", help="sha256 digest of the document")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse arguments, run the command, exit with its status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
