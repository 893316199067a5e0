"""ezwrite CLI entry point.

Allows running via `python -m ezwrite` and provides the console script
defined in `pyproject.toml`.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from .constants import EditorConstants
from .version import get_version_string

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Log to the file named by EZWRITE_LOG; stay silent otherwise.

    The editor owns the whole screen, so nothing may go to stderr.
    """
    path = os.environ.get("EZWRITE_LOG")
    root = logging.getLogger("ezwrite")
    if not path:
        root.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(os.environ.get("EZWRITE_LOG_LEVEL", "DEBUG").upper())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ezwrite", description="Distraction-free structured writing.")
    parser.add_argument("--version", "-V", action="store_true", help="print version and exit")
    parser.add_argument("--page", type=int, metavar="N",
                        help=f"open page N (1-{EditorConstants.PAGE_COUNT})")
    parser.add_argument("--export", nargs="+", metavar=("FORMAT", "PATH"),
                        help="export the page as txt, md or pdf and exit")
    parser.add_argument("--textual", action="store_true", help="use the Textual interface")
    return parser


def run_export(fmt: str, path: Optional[str], page: Optional[int]) -> int:
    from .export import EXPORT_FORMATS, ExportError, write_export
    from .pages import PageStore
    from .storage import LocalStore

    if fmt not in EXPORT_FORMATS:
        print(f"Unknown export format: {fmt}", file=sys.stderr)
        return 2
    pages = PageStore(LocalStore())
    pages.load()
    index = pages.active if page is None else page
    lines = pages.pages[index].split(EditorConstants.LINE_SEPARATOR)
    try:
        written = write_export(lines, fmt, path)
    except ExportError as e:
        print(str(e), file=sys.stderr)
        return 1
    print(f"Exported page {index + 1} to {written}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.version:
        print(get_version_string())
        return 0

    configure_logging()
    page = None
    if args.page is not None:
        if not 1 <= args.page <= EditorConstants.PAGE_COUNT:
            print(f"Page must be between 1 and {EditorConstants.PAGE_COUNT}", file=sys.stderr)
            return 2
        page = args.page - 1

    if args.export:
        if len(args.export) > 2:
            print("--export takes a format and an optional path", file=sys.stderr)
            return 2
        fmt = args.export[0]
        path = args.export[1] if len(args.export) > 1 else None
        return run_export(fmt, path, page)

    # Lazy import to avoid importing UI deps for --version and --export
    if args.textual:
        from .textual_app import EzwriteApp
        EzwriteApp().run()
        return 0

    from .editor import Editor
    logger.info("Starting editor")
    Editor(page=page).run()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
