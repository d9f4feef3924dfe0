"""CLI utility to parse documents and add them to the vector store."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from rag_pipeline.config import RAGConfig
from rag_pipeline.main import ingest_text, initialise_rag

DEFAULT_STORE_DIR = Path(__file__).resolve().parent / "store"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chunk, embed and store one or more documents.")
    parser.add_argument("paths", nargs="*", help="Files to ingest (.txt, .md, .pdf, .docx, .html, ...).")
    parser.add_argument(
        "--name",
        default=None,
        help="Document name to record instead of the file name (single file or --text only).",
    )
    parser.add_argument("--text", default=None, help="Ingest this literal text instead of files.")
    parser.add_argument(
        "--store-dir",
        default=None,
        help=f"Directory holding the vector store (default: $RAG_STORE_DIR or {DEFAULT_STORE_DIR}).",
    )
    parser.add_argument("--json", action="store_true", help="Print each result as JSON.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: %(default)s).")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.text is None and not args.paths:
        parser.error("give at least one path or --text")
    if args.name and len(args.paths) > 1:
        parser.error("--name can only be used with a single document")
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = RAGConfig.from_env()
    config.store.persist_directory = args.store_dir or config.store.persist_directory or str(DEFAULT_STORE_DIR)
    client = initialise_rag(config)

    results = []
    if args.text is not None:
        results.append(ingest_text(client, args.text, args.name or "inline-text"))
    for path in args.paths:
        results.append(client.ingest_file(path, args.name))

    for result in results:
        if args.json:
            print(json.dumps(result.to_dict(), ensure_ascii=False))
        else:
            print(result.message)
    return 0 if all(result.success for result in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
