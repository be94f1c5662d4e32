from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer

from memecli import image_io
from memecli.config import config_sources, get_cache_dir, load_config, write_default_config
from memecli.content import parse_content_items
from memecli.decoders.image_decoder import decode_image
from memecli.errors import ConfigError, MemeError
from memecli.export import default_extension, save_meme, write_meme
from memecli.models import MemeConfig, RenderConfig, Slot
from memecli.naming import build_output_name
from memecli.render.meme import add_top_text, render_meme
from memecli.render.typography import load_font_face
from memecli.sources import source_dirs, update_source
from memecli.template_loader import find_template, list_templates, write_template

app = typer.Typer(
    no_args_is_help=True,
    help="A way to easily generate dank memes from preconfigured templates.",
)
LOGGER = logging.getLogger("memecli")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _fail(message: str) -> typer.Exit:
    typer.secho(message, err=True, fg=typer.colors.RED)
    return typer.Exit(1)


def _load_config_or_exit(config_path: Path | None) -> dict:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        raise _fail(str(exc))


def parse_coordinates(literal: str) -> Slot:
    """Parse ``LEFT-TOP-RIGHT-BOTTOM`` into a slot."""
    parts = literal.split("-")
    if len(parts) != 4:
        raise ValueError(f"Incorrect coordinate literal: {literal!r}")
    try:
        left, top, right, bottom = (int(part) for part in parts)
    except ValueError as exc:
        raise ValueError(f"Incorrect coordinate literal: {literal!r}") from exc
    if right < left or bottom < top:
        raise ValueError(f"Incorrect coordinate literal: {literal!r} (max before min)")
    return Slot(min=(left, top), max=(right, bottom))


def parse_color(literal: str) -> tuple[float, float, float, float]:
    parts = [part.strip() for part in literal.split(",")]
    if len(parts) == 3:
        parts.append("1")
    if len(parts) != 4:
        raise ValueError(f"color must be r,g,b[,a] floats in [0, 1], got: {literal!r}")
    try:
        channels = [float(part) for part in parts]
    except ValueError as exc:
        raise ValueError(f"color must be r,g,b[,a] floats in [0, 1], got: {literal!r}") from exc
    if any(channel < 0.0 or channel > 1.0 for channel in channels):
        raise ValueError(f"color must be r,g,b[,a] floats in [0, 1], got: {literal!r}")
    return channels[0], channels[1], channels[2], channels[3]


@app.command()
def generate(
    template: str = typer.Argument(..., help="The template to use."),
    inputs: list[str] | None = typer.Argument(
        None,
        help='Text placed into the template. "/meme NAME$$a$$b" nests a template, "/image PATH" places an image.',
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path. '-' writes the meme to stdout. By default the meme is copied to the clipboard.",
    ),
    save: bool = typer.Option(
        False,
        "--save",
        "-s",
        help="Without --output, save to a file named by the configured name template instead of the clipboard.",
    ),
    max_size: float | None = typer.Option(None, "--max-size", "-m", min=1.0, help="Maximum font size for the text."),
    watermark: str | None = typer.Option(None, "--watermark", "-w", help="Custom watermark text."),
    no_watermark: bool = typer.Option(False, "--no-watermark", help="Do not draw a watermark."),
    top_text: str | None = typer.Option(None, "--top-text", "-t", help="Caption placed in a strip above the meme."),
    config_path: Path | None = typer.Option(None, "--config", help="Configuration file to use."),
    log_level: str = typer.Option("warning", "--log-level"),
) -> None:
    """Generate a meme from a template."""
    _setup_logging(log_level)
    cfg = _load_config_or_exit(config_path)
    try:
        dirs = source_dirs(config_sources(cfg), get_cache_dir())
        meme = find_template(dirs, template)
        LOGGER.info("Template found")
        contents = parse_content_items(inputs or [], lambda name: find_template(dirs, name))
    except MemeError as exc:
        raise _fail(str(exc))

    face = load_font_face(Path(cfg["font"]).expanduser() if cfg.get("font") else None)
    render_config = RenderConfig(
        max_font_size=max_size if max_size is not None else float(cfg["max_font_size"]),
        watermark=None if no_watermark else (watermark if watermark is not None else cfg.get("watermark")),
        watermark_size_fraction=float(cfg["watermark_size_fraction"]),
    )
    rendered = render_meme(meme, contents, render_config, face=face)
    if top_text:
        rendered = add_top_text(rendered, top_text, face=face, max_font_size=render_config.max_font_size)
    LOGGER.info("Meme rendered")

    try:
        if output is not None and str(output) == "-":
            write_meme(rendered, sys.stdout.buffer)
            sys.stdout.buffer.flush()
            return
        if output is None and not save:
            if rendered.is_animated:
                LOGGER.warning("The clipboard holds a single image, copying the first frame only")
            image_io.image_out(rendered.image)
            typer.echo("Done! Meme copied to the clipboard", err=True)
            return
        if output is None:
            extension = default_extension(rendered, str(cfg.get("output_format") or "png"))
            output = Path(build_output_name(str(cfg["name_template"]), template, extension))
        save_meme(rendered, output)
    except (MemeError, ValueError, OSError) as exc:
        raise _fail(str(exc))
    typer.echo(f"Done! {output}", err=True)


@app.command("make-template")
def make_template(
    template_name: str = typer.Argument(..., help="The template name."),
    coordinates: list[str] | None = typer.Argument(None, help="Text slots given as LEFT-TOP-RIGHT-BOTTOM."),
    input_path: Path | None = typer.Option(
        None,
        "--input",
        "-i",
        exists=True,
        dir_okay=False,
        resolve_path=True,
        help="The image for the template. Read from the clipboard when absent.",
    ),
    color: str = typer.Option("0,0,0,1", "--color", help="Text color as r,g,b[,a] floats in [0, 1]."),
    config_path: Path | None = typer.Option(None, "--config", help="Configuration file to use."),
) -> None:
    """Generate a meme template and save it to the first local source."""
    cfg = _load_config_or_exit(config_path)
    try:
        slots = [parse_coordinates(literal) for literal in coordinates or []]
        text_color = parse_color(color)
    except ValueError as exc:
        raise _fail(str(exc))

    try:
        local = next((source for source in config_sources(cfg) if source.is_local), None)
        if local is None:
            raise ConfigError("No local sources configured")
        image = decode_image(input_path) if input_path is not None else image_io.image_in()
        path = write_template(local.to_path(get_cache_dir()), template_name, image, MemeConfig(color=text_color, text=slots))
    except (MemeError, RuntimeError, OSError) as exc:
        raise _fail(str(exc))
    typer.echo(f"Template saved: {path}")


@app.command("list-sources")
def list_sources_command(
    config_path: Path | None = typer.Option(None, "--config", help="Configuration file to use."),
) -> None:
    """List all template sources."""
    cfg = _load_config_or_exit(config_path)
    try:
        sources = config_sources(cfg)
    except MemeError as exc:
        raise _fail(str(exc))
    for source in sources:
        typer.echo(source.describe())


@app.command("list-templates")
def list_templates_command(
    config_path: Path | None = typer.Option(None, "--config", help="Configuration file to use."),
) -> None:
    """List all template names."""
    cfg = _load_config_or_exit(config_path)
    try:
        dirs = source_dirs(config_sources(cfg), get_cache_dir())
    except MemeError as exc:
        raise _fail(str(exc))
    for name in list_templates(dirs):
        typer.echo(name)


@app.command("update-sources")
def update_sources_command(
    config_path: Path | None = typer.Option(None, "--config", help="Configuration file to use."),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Fetch potential new memes from the configured git sources."""
    _setup_logging(log_level)
    cfg = _load_config_or_exit(config_path)
    failed = 0
    try:
        sources = config_sources(cfg)
    except MemeError as exc:
        raise _fail(str(exc))
    cache_dir = get_cache_dir()
    for source in sources:
        try:
            update_source(source, cache_dir)
        except MemeError as exc:
            failed += 1
            LOGGER.error("FAIL %s  %s", source.describe(), exc)
    if failed:
        raise _fail(f"{failed} source(s) failed to update")


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
    config_path: Path | None = typer.Option(None, "--config", help="Where to write the configuration file."),
) -> None:
    path = write_default_config(config_path, force=force)
    typer.echo(f"Config initialized: {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
