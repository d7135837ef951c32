from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from dotenv import load_dotenv

from docnav.ingest import PyMuPDFBook, iter_outline_labels
from docnav.navigation import TOCIndexer
from docnav.settings import configure_logging, get_settings


def parse_args() -> argparse.Namespace:
    if Path(".env").exists():
        load_dotenv(".env", override=False)
    parser = argparse.ArgumentParser(description="Inspect the outline, chapters and text of a PDF.")
    parser.add_argument("document", type=Path, help="Path to the PDF document")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("outline", help="Print the outline tree")
    subparsers.add_parser("chapters", help="Print the chapter index derived from the outline")

    text = subparsers.add_parser("text", help="Print the reconstructed text of one page")
    text.add_argument("page", type=int, help="Zero-based page index")

    chapter = subparsers.add_parser("chapter", help="Print the content of the chapter containing a page")
    chapter.add_argument("page", type=int, help="Zero-based page index")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    settings = get_settings()
    book = PyMuPDFBook.open(args.document, settings)
    try:
        if args.command == "outline":
            if not book.toc:
                print("(no outline)")
            for line in iter_outline_labels(book.toc or []):
                print(line)
            return

        if args.command == "text":
            print(await book.sections[args.page].load_text())
            return

        indexer = TOCIndexer(settings)
        chapters = await indexer.build_chapter_index(book.toc, book.resolve_href, len(book.sections))
        if args.command == "chapters":
            for entry in chapters.entries:
                index = "?" if entry.index is None else entry.index
                print(f"{'  ' * entry.level}{entry.label} -> {index}")
            for chapter in chapters.partition():
                print(f"{chapter.path}\t{chapter.label}")
            return

        chapter_range = indexer.range_for_index(args.page, chapters)
        if chapter_range is None:
            raise SystemExit(f"Page {args.page} is outside the document ({len(book.sections)} pages)")

        async def load_text(index: int) -> str:
            return await book.sections[index].load_text()

        print(await indexer.chapter_content(chapter_range, load_text))
    finally:
        book.close()


def main() -> None:
    args = parse_args()
    configure_logging()
    if not args.document.exists():
        raise FileNotFoundError(f"Document not found: {args.document}")
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
