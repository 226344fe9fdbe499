from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from . import config
from .errors import FieldpressError
from .models import WatermarkOptions, parse_batch, parse_certificate
from .pipeline import pages
from .pipeline.compose import add_multiple_fields
from .pipeline.render_preview import generate_thumbnail, render_page_to_image
from .storage import artifact_path, get_pdf_info, write_artifact

app = typer.Typer(help="Compose fields onto PDFs, restructure pages and render previews")
logger = logging.getLogger(__name__)


@app.callback()
def main(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    preset: Optional[Path] = typer.Option(None, "--preset", help="JSON style preset"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if out:
        config.set_out_dir(out)
    if preset:
        config.apply_style_preset(config.load_style_preset(preset))


def _read(path: Path) -> bytes:
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    return path.read_bytes()


def _read_json(path: Path) -> dict:
    try:
        return json.loads(_read(path).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Invalid JSON in {path}: {exc}") from exc


def _fail(exc: FieldpressError) -> NoReturn:
    logger.debug("Operation failed", exc_info=exc)
    typer.echo(f"ERROR: {exc}", err=True)
    raise typer.Exit(code=1)


@app.command()
def info(pdf: Path = typer.Argument(..., help="Input PDF")) -> None:
    try:
        details = get_pdf_info(_read(pdf))
    except FieldpressError as exc:
        _fail(exc)
    typer.echo(f"Pages: {details.page_count}")
    for page in details.pages:
        typer.echo(f"  [{page.page_index}] {page.width:g} x {page.height:g} pt")
    if details.title:
        typer.echo(f"Title: {details.title}")
    if details.author:
        typer.echo(f"Author: {details.author}")


@app.command()
def compose(
    pdf: Path = typer.Argument(..., help="Input PDF"),
    fields: Path = typer.Argument(..., help="JSON file describing the fields"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    try:
        batch = parse_batch(_read_json(fields))
        result = add_multiple_fields(_read(pdf), batch)
    except FieldpressError as exc:
        _fail(exc)
    path = write_artifact(output or artifact_path(pdf.name, "composed"), result)
    typer.echo(f"Composed {len(batch)} fields -> {path}")


@app.command()
def merge(
    pdfs: List[Path] = typer.Argument(..., help="PDFs to merge, in order"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    try:
        result = pages.merge_pdfs([_read(path) for path in pdfs])
    except FieldpressError as exc:
        _fail(exc)
    path = write_artifact(output or artifact_path(pdfs[0].name, "merged"), result)
    typer.echo(f"Merged {len(pdfs)} files -> {path}")


@app.command()
def extract(
    pdf: Path = typer.Argument(..., help="Input PDF"),
    page_numbers: List[int] = typer.Argument(..., help="0-based page indices, in output order"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    try:
        result = pages.extract_pages(_read(pdf), page_numbers)
    except FieldpressError as exc:
        _fail(exc)
    path = write_artifact(output or artifact_path(pdf.name, "extracted"), result)
    typer.echo(f"Extracted {len(page_numbers)} pages -> {path}")


@app.command()
def watermark(
    pdf: Path = typer.Argument(..., help="Input PDF"),
    text: str = typer.Argument(..., help="Watermark text"),
    font_size: Optional[float] = typer.Option(None, "--font-size"),
    opacity: Optional[float] = typer.Option(None, "--opacity"),
    rotation: Optional[float] = typer.Option(None, "--rotation"),
    color: Optional[str] = typer.Option(None, "--color", help="#RRGGBB"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    try:
        given = {"font_size": font_size, "opacity": opacity, "rotation": rotation, "color": color}
        options = WatermarkOptions(**{key: value for key, value in given.items() if value is not None})
        result = pages.add_watermark(_read(pdf), text, options)
    except FieldpressError as exc:
        _fail(exc)
    path = write_artifact(output or artifact_path(pdf.name, "watermarked"), result)
    typer.echo(f"Watermarked -> {path}")


@app.command()
def certificate(
    pdf: Path = typer.Argument(..., help="Input PDF"),
    data: Path = typer.Argument(..., help="JSON file with title, completion date, id and signers"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    try:
        result = pages.add_certificate(_read(pdf), parse_certificate(_read_json(data)))
    except FieldpressError as exc:
        _fail(exc)
    path = write_artifact(output or artifact_path(pdf.name, "certified"), result)
    typer.echo(f"Certificate appended -> {path}")


@app.command()
def flatten(
    pdf: Path = typer.Argument(..., help="Input PDF"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    try:
        result = pages.flatten_pdf(_read(pdf))
    except FieldpressError as exc:
        _fail(exc)
    path = write_artifact(output or artifact_path(pdf.name, "flattened"), result)
    typer.echo(f"Flattened -> {path}")


@app.command()
def optimize(
    pdf: Path = typer.Argument(..., help="Input PDF"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    original = _read(pdf)
    try:
        result = pages.optimize_pdf(original)
    except FieldpressError as exc:
        _fail(exc)
    report = pages.optimize_report(original, result)
    path = write_artifact(output or artifact_path(pdf.name, "optimized"), result)
    typer.echo(
        f"Optimized -> {path} ({report.original_size} -> {report.optimized_size} bytes, "
        f"{report.percent_saved}% saved)"
    )


@app.command()
def render(
    pdf: Path = typer.Argument(..., help="Input PDF"),
    page: int = typer.Option(0, "--page", help="0-based page index"),
    scale: Optional[float] = typer.Option(None, "--scale"),
    width: Optional[int] = typer.Option(None, "--width", help="Output width in pixels"),
    height: Optional[int] = typer.Option(None, "--height", help="Output height in pixels"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    try:
        result = render_page_to_image(_read(pdf), page, scale=scale, width=width, height=height)
    except FieldpressError as exc:
        _fail(exc)
    path = write_artifact(output or artifact_path(pdf.name, "page_image", page=page), result)
    typer.echo(f"Rendered page {page} -> {path}")


@app.command()
def thumbnail(
    pdf: Path = typer.Argument(..., help="Input PDF"),
    max_width: Optional[int] = typer.Option(None, "--max-width"),
    max_height: Optional[int] = typer.Option(None, "--max-height"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    try:
        result = generate_thumbnail(_read(pdf), max_width=max_width, max_height=max_height)
    except FieldpressError as exc:
        _fail(exc)
    path = write_artifact(output or artifact_path(pdf.name, "thumbnail"), result)
    typer.echo(f"Thumbnail -> {path}")


if __name__ == "__main__":
    app()
