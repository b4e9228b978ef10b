"""Command-line entry point: ingest files and ask questions."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from .config import config
from .exceptions import RAGError
from .service import RAGService

if TYPE_CHECKING:
    from collections.abc import Sequence
    from logging import Logger

EXIT_COMMANDS = {"exit", "quit", ":q"}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Build the CLI parser and read command-line arguments."""  # noqa: DOC201
    parser = argparse.ArgumentParser(
        prog="ragdesk",
        description=(
            "Ask questions about your documents with retrieval-augmented generation."
        ),
    )
    parser.add_argument(
        "question",
        nargs="?",
        help="Question to answer. Starts an interactive prompt when omitted.",
    )
    parser.add_argument(
        "-f",
        "--file",
        dest="files",
        type=Path,
        action="append",
        default=[],
        help="Document to ingest before answering (repeatable).",
    )
    parser.add_argument(
        "--conversation-id",
        type=int,
        default=1,
        help="Conversation memory key (default: 1).",
    )
    parser.add_argument(
        "--top-k",
        type=int,
        default=None,
        help=f"Segments to retrieve (default: {config.RETRIEVAL_TOP_K}).",
    )
    parser.add_argument(
        "--min-score",
        type=float,
        default=None,
        help=f"Minimum similarity score (default: {config.RETRIEVAL_MIN_SCORE}).",
    )
    return parser.parse_args(argv)


def ingest_files(service: RAGService, files: Sequence[Path], logger: Logger) -> int:
    """Ingest every file and return the number of segments indexed."""  # noqa: DOC201
    total = 0
    for file_path in files:
        total += service.ingest_document(
            file_path.read_bytes(), {"fileName": file_path.name}
        )
        logger.info("Indexed %s", file_path)
    return total


def run_interactive(service: RAGService, conversation_id: int, logger: Logger) -> int:
    """Answer questions from stdin until EOF or an exit command."""  # noqa: DOC201
    while True:
        try:
            question = input("question> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return 0
        if not question:
            continue
        if question.lower() in EXIT_COMMANDS:
            return 0
        try:
            print(service.answer_question(conversation_id, question))
        except RAGError:
            logger.exception("Unable to answer question")


def main(argv: Sequence[str] | None = None) -> int:
    """Validate configuration, ingest documents and answer questions."""  # noqa: DOC201
    args = parse_args(argv)

    config.setup_logging()
    logger = config.get_logger(__name__)

    try:
        config.validate()
        service = RAGService.from_config(top_k=args.top_k, min_score=args.min_score)
    except RAGError:
        logger.exception("Configuration invalid")
        return 1

    missing = [path for path in args.files if not path.exists()]
    if missing:
        logger.error("Document not found: %s", ", ".join(map(str, missing)))
        return 1

    try:
        ingest_files(service, args.files, logger)
        service.save()
    except (RAGError, OSError):
        logger.exception("Document ingestion failed")
        return 1

    if args.question is None:
        return run_interactive(service, args.conversation_id, logger)

    try:
        print(service.answer_question(args.conversation_id, args.question))
    except RAGError:
        logger.exception("Unable to answer question")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
