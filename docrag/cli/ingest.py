"""Standalone CLI for ingesting and querying document collections.

Usage::

    python -m docrag.cli process-all

    python -m docrag.cli process --namespace n1 --name handbook.pdf

    python -m docrag.cli search --query "refund policy" --top-k 3 --namespace u1

    python -m docrag.cli status

Configuration is read from the environment and ``.env`` exactly as the API
server reads it.  The in-process vector index does not survive the command,
so ``search`` and ``status`` are only meaningful against a Qdrant backend.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import TYPE_CHECKING

from docrag.config.settings import Settings
from docrag.utils.errors import DocRAGError
from docrag.utils.logging import configure_logging

if TYPE_CHECKING:
    from docrag.services.document_service import DocumentService


async def _build_service(app_settings: Settings) -> DocumentService:
    # Deferred so --help works without the provider stack importing.
    from docrag.main import build_document_service

    return await build_document_service(app_settings)


async def _handle_process_all(service: DocumentService) -> int:
    print("Processing all configured namespaces...")
    summary = await service.process_all_documents()

    if not summary.success:
        print(f"Error: run aborted: {summary.error}", file=sys.stderr)
        return 1

    print("\nIngestion complete:")
    print(f"  Documents processed: {summary.processed}")
    print(f"  Documents failed:    {summary.failed}")
    print(f"  Chunks stored:       {summary.run_chunks}")
    print(f"  Time:                {summary.duration:.2f}s")
    for failure in summary.failures:
        target = failure.filename or "<listing>"
        print(f"  FAILED {failure.namespace}/{target}: {failure.error}")
    return 0 if summary.failed == 0 else 2


async def _handle_process(args: argparse.Namespace, service: DocumentService) -> int:
    print(f"Processing document: {args.namespace}/{args.name}")
    try:
        result = await service.process_document(args.namespace, args.name)
    except DocRAGError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if result is None:
        print("  Skipped: unsupported file type.")
        return 0

    print("\nIngestion complete:")
    print(f"  Media type:      {result.media_type}")
    print(f"  Pages:           {result.page_count}")
    print(f"  Chunks created:  {result.chunks_created}")
    print(f"  Records replaced: {result.records_replaced}")
    print(f"  Time:            {result.ingestion_time:.2f}s")
    return 0


async def _handle_search(args: argparse.Namespace, service: DocumentService) -> int:
    results = await service.search_documents(
        args.query, top_k=args.top_k, namespace_filter=args.namespace
    )
    if not results:
        print("No matching passages.")
        return 0

    for rank, result in enumerate(results, start=1):
        meta = result.metadata
        print(
            f"{rank}. [{result.similarity:.3f}] "
            f"{meta.get('namespace')}/{meta.get('filename')} #{meta.get('chunk_index')}"
        )
        print(f"   {result.text[:200]}")
    return 0


async def _handle_status(service: DocumentService) -> int:
    health = await service.get_health_status()
    index = health["vector_index"]

    print("Document Index Status")
    print("=" * 40)
    print(f"  Overall:         {health['status']}")
    print(f"  Vector backend:  {index['backend']} ({index['status']})")
    print(f"  Stored records:  {index['documents_count']}")
    print(f"  Embeddings:      {health['embeddings']['provider']}")
    print(f"  Namespaces:      {', '.join(health['object_store']['namespaces'])}")
    return 0


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    service = await _build_service(app_settings)
    try:
        if args.command == "process-all":
            return await _handle_process_all(service)
        if args.command == "process":
            return await _handle_process(args, service)
        if args.command == "search":
            return await _handle_search(args, service)
        return await _handle_status(service)
    finally:
        await service.shutdown()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docrag",
        description="Ingest document collections into the vector index and query them.",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("process-all", help="Ingest every document in every namespace")

    process_parser = subparsers.add_parser("process", help="Ingest a single document")
    process_parser.add_argument("--namespace", required=True, help="Collection namespace")
    process_parser.add_argument("--name", required=True, help="Document name")

    search_parser = subparsers.add_parser("search", help="Similarity search")
    search_parser.add_argument("--query", required=True, help="Natural-language query")
    search_parser.add_argument("--top-k", type=int, default=5, help="Maximum results")
    search_parser.add_argument("--namespace", default=None, help="Restrict to one namespace")

    subparsers.add_parser("status", help="Show index and provider status")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point; exits with the handler's status code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level, json_output=False)

    try:
        exit_code = asyncio.run(_run(args, app_settings))
    except DocRAGError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
