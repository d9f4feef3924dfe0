"""CLI utility to inspect and maintain the vector store collection."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from rag_pipeline.config import RAGConfig
from rag_pipeline.main import RAGClient

DEFAULT_STORE_DIR = Path(__file__).resolve().parent / "store"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect or maintain the document collection.")
    parser.add_argument(
        "--store-dir",
        default=None,
        help=f"Directory holding the vector store (default: $RAG_STORE_DIR or {DEFAULT_STORE_DIR}).",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: %(default)s).")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show the collection name and number of stored chunks.")

    list_parser = sub.add_parser("list", help="List stored chunks.")
    list_parser.add_argument("--limit", type=int, default=500, help="Maximum chunks to show (default: %(default)s).")
    list_parser.add_argument("--json", action="store_true", help="Print chunks as JSON.")

    delete_parser = sub.add_parser("delete", help="Delete chunks by id.")
    delete_parser.add_argument("ids", nargs="+", help="Chunk ids (UUIDs) to delete.")

    clear_parser = sub.add_parser("clear", help="Delete every chunk and recreate the collection.")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm that all chunks should be removed.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = RAGConfig.from_env()
    config.store.persist_directory = args.store_dir or config.store.persist_directory or str(DEFAULT_STORE_DIR)
    client = RAGClient.from_config(config)
    collection = config.store.collection_name

    if args.command == "status":
        ready = client.ensure_collection_exists()
        print(f"Collection: {collection}")
        print(f"Ready: {'yes' if ready else 'no'}")
        print(f"Chunks: {client.document_count()}")
        return 0 if ready else 1

    if args.command == "list":
        chunks = client.list_chunks(args.limit)
        if args.json:
            print(json.dumps([chunk.to_dict() for chunk in chunks], indent=2, ensure_ascii=False))
        else:
            for chunk in chunks:
                print(f"{chunk.id}  {chunk.source_document}#{chunk.chunk_index}  {chunk.content_preview}")
        return 0

    if args.command == "delete":
        submitted = client.delete_chunks(args.ids)
        print(f"Submitted {submitted} of {len(args.ids)} id(s) for deletion")
        return 0 if submitted else 1

    if not args.yes:
        print(f"Refusing to clear {collection!r} without --yes")
        return 1
    cleared = client.clear_collection()
    print(f"Cleared {collection}" if cleared else f"Failed to clear {collection}")
    return 0 if cleared else 1


if __name__ == "__main__":
    raise SystemExit(main())
