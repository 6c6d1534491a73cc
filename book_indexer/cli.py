"""
CLI entry point.

    book-indexer build path/to/book.pdf -o index.txt
    book-indexer build path/to/book.pdf --toc-start 5 --toc-end 7 --json
    book-indexer toc path/to/book.pdf            # show parsed TOC and chapter ranges
    book-indexer config show
    book-indexer config set toc_header Contents
"""

import json
import logging
from pathlib import Path
from typing import Any

import typer

from book_indexer import config as config_module
from book_indexer.api import build_index_from_pdf
from book_indexer.backends import REGISTRY, get_backend
from book_indexer.errors import ConfigurationError, ExtractionFailure, NotFoundError
from book_indexer.models import CHAPTER_END_SENTINEL, IndexConfig
from book_indexer.output import render_index, render_index_json
from book_indexer.pipeline import read_toc

app = typer.Typer(
    name="book-indexer",
    help="Build back-of-book indexes (term -> book pages) from PDFs.",
)
config_app = typer.Typer(help="Default options stored in .book_indexer.json.")
app.add_typer(config_app, name="config")


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(message)s")


def _check_inputs(pdf: Path, backend: str) -> None:
    if not pdf.is_file():
        typer.echo(f"Error: PDF not found: {pdf}", err=True)
        raise typer.Exit(1)
    if backend not in REGISTRY:
        typer.echo(f"Error: unknown backend '{backend}'. Choose: {', '.join(REGISTRY)}", err=True)
        raise typer.Exit(1)


def _load_config(**overrides: Any) -> IndexConfig:
    try:
        return config_module.load_index_config(**overrides)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("build")
def build_cmd(
    pdf: Path = typer.Argument(..., help="Path to the PDF file", path_type=Path),
    output: Path | None = typer.Option(None, "-o", "--output", help="Write the index here instead of stdout"),
    as_json: bool = typer.Option(False, "--json", help="Emit a JSON list of {term, pages}"),
    toc_header: str | None = typer.Option(None, "--toc-header", help="Marker text on the first TOC page"),
    toc_end_marker: str | None = typer.Option(None, "--toc-end-marker", help="Marker text on the last TOC page"),
    toc_start: int | None = typer.Option(None, "--toc-start", help="Manual TOC start page (physical, 1-based)"),
    toc_end: int | None = typer.Option(None, "--toc-end", help="Manual TOC end page (physical, 1-based)"),
    chapters: int | None = typer.Option(None, "--chapters", help="Override the detected chapter count"),
    two_level: bool | None = typer.Option(
        None, "--two-level/--one-level", help="Use N.M sections as chapter boundaries"
    ),
    per_chapter: bool | None = typer.Option(
        None, "--per-chapter/--all-pages", help="Keep only the earliest page per chapter"
    ),
    max_pages_per_term: int | None = typer.Option(None, "--max-pages-per-term", help="Per-term page cap"),
    max_pages: int | None = typer.Option(None, "--max-pages", help="Safety cap on pages scanned"),
    toc_scan_pages: int | None = typer.Option(None, "--toc-scan-pages", help="Pages searched for the TOC header"),
    backend: str = typer.Option("pymupdf", "--backend", "-b", help=f"Backend: {', '.join(REGISTRY)}"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Print progress and diagnostics"),
) -> None:
    """Build the index for a PDF."""
    _setup_logging(verbose)
    _check_inputs(pdf, backend)
    cfg = _load_config(
        toc_header=toc_header,
        toc_end_marker=toc_end_marker,
        toc_start_page=toc_start,
        toc_end_page=toc_end,
        chapter_count=chapters,
        use_two_level=two_level,
        one_page_per_chapter=per_chapter,
        max_pages_per_term=max_pages_per_term,
        max_pages=max_pages,
        max_toc_scan_pages=toc_scan_pages,
    )

    try:
        result = build_index_from_pdf(pdf, backend=backend, config=cfg)
    except (ConfigurationError, ExtractionFailure) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if not result.success:
        typer.echo(result.message, err=True)
        raise typer.Exit(2)

    text = render_index_json(result.lines) if as_json else render_index(result.lines, cfg.separator)
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    typer.echo(result.message)
    typer.echo(f"  index → {output}")


@app.command("toc")
def toc_cmd(
    pdf: Path = typer.Argument(..., help="Path to the PDF file", path_type=Path),
    toc_header: str | None = typer.Option(None, "--toc-header", help="Marker text on the first TOC page"),
    toc_end_marker: str | None = typer.Option(None, "--toc-end-marker", help="Marker text on the last TOC page"),
    toc_start: int | None = typer.Option(None, "--toc-start", help="Manual TOC start page (physical, 1-based)"),
    toc_end: int | None = typer.Option(None, "--toc-end", help="Manual TOC end page (physical, 1-based)"),
    two_level: bool | None = typer.Option(
        None, "--two-level/--one-level", help="Use N.M sections as chapter boundaries"
    ),
    backend: str = typer.Option("pymupdf", "--backend", "-b", help=f"Backend: {', '.join(REGISTRY)}"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Print progress and diagnostics"),
) -> None:
    """Show the parsed table of contents and chapter ranges."""
    _setup_logging(verbose)
    _check_inputs(pdf, backend)
    cfg = _load_config(
        toc_header=toc_header,
        toc_end_marker=toc_end_marker,
        toc_start_page=toc_start,
        toc_end_page=toc_end,
        use_two_level=two_level,
    )

    try:
        with get_backend(backend)(pdf) as source:
            result = read_toc(source, cfg)
    except NotFoundError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(2)
    except (ConfigurationError, ExtractionFailure) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    start, end = result.toc_range
    typer.echo(f"TOC pages: {start}-{end}")
    for entry in result.toc_entries:
        indent = "  " * (entry.level - 1)
        typer.echo(f"{indent}- {entry.number} {entry.title} (p. {entry.page})")
    typer.echo("\nChapters:")
    for r in result.chapter_ranges:
        end_label = "end" if r.end >= CHAPTER_END_SENTINEL else str(r.end)
        typer.echo(f"  {r.id}: {r.start}-{end_label}")


@config_app.command("show")
def _show() -> None:
    """Show the config file in use and the effective options."""
    path = config_module.get_config_path()
    typer.echo(f"Config file: {path} (exists: {path.exists()})")
    cfg = _load_config()
    typer.echo(json.dumps(cfg.model_dump(mode="json"), indent=2, ensure_ascii=False))


@config_app.command("set")
def _set(
    key: str = typer.Argument(..., help="Option name (IndexConfig field)"),
    value: str = typer.Argument(..., help="Value; JSON literals (3, true, [\"a\"]) are parsed"),
) -> None:
    """Store a default option in the config file."""
    result = config_module.set_config_value(key, value)
    if not result["ok"]:
        typer.echo(result["error"], err=True)
        raise typer.Exit(1)
    typer.echo(f"Set {key} in {result['path']}")


@config_app.command("unset")
def _unset(key: str = typer.Argument(..., help="Option name")) -> None:
    """Remove a stored option (back to the built-in default)."""
    result = config_module.unset_config_value(key)
    if not result["ok"]:
        typer.echo(result["error"], err=True)
        raise typer.Exit(1)
    typer.echo(f"Unset {key} in {result['path']}")


def main() -> None:
    """Entry point for the book-indexer console script."""
    app()


if __name__ == "__main__":
    main()
