"""CLI entry point to answer a question from the ingested documents."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from rag_pipeline.config import RAGConfig
from rag_pipeline.main import answer_question, initialise_rag

DEFAULT_STORE_DIR = Path(__file__).resolve().parent / "store"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Answer a question using the local document store.")
    parser.add_argument("question", help="Question to ask.")
    parser.add_argument(
        "--store-dir",
        default=None,
        help=f"Directory holding the vector store (default: $RAG_STORE_DIR or {DEFAULT_STORE_DIR}).",
    )
    parser.add_argument(
        "--top-k",
        type=int,
        default=None,
        help="Number of context chunks to retrieve before answering (default: $RAG_TOP_K or 3).",
    )
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: %(default)s).")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = RAGConfig.from_env()
    config.store.persist_directory = args.store_dir or config.store.persist_directory or str(DEFAULT_STORE_DIR)
    top_k = args.top_k if args.top_k is not None else config.retrieval.default_top_k

    client = initialise_rag(config)
    result = answer_question(client, args.question, top_k=top_k)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(result.answer)
    if result.sources:
        print("\nSources:")
        for number, source in enumerate(result.sources, start=1):
            print(f"  [{number}] {source.source_document} (score {source.score:.3f})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
