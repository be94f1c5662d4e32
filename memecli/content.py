from __future__ import annotations

from pathlib import Path
from typing import Callable

from memecli.constants import IMAGE_PREFIX, NESTED_MEME_PREFIX, NESTED_MEME_SEPARATOR
from memecli.decoders.image_decoder import decode_image
from memecli.errors import MemeError
from memecli.models import ImageContent, MemeContent, MemeTemplate, NestedTemplateContent, TextContent

TemplateResolver = Callable[[str], MemeTemplate]


def parse_content_item(raw: str, resolve_template: TemplateResolver) -> MemeContent:
    """Turn one CLI input into a content item.

    ``/meme NAME$$a$$b`` nests template NAME filled with texts ``a`` and ``b``;
    ``/image PATH`` places an image file; anything else is text.
    """
    if raw.startswith(NESTED_MEME_PREFIX):
        parts = raw[len(NESTED_MEME_PREFIX) :].split(NESTED_MEME_SEPARATOR)
        name = parts[0].strip()
        if not name:
            raise MemeError("meme needs template")
        return NestedTemplateContent(
            template=resolve_template(name),
            contents=[TextContent(text) for text in parts[1:]],
        )
    if raw.startswith(IMAGE_PREFIX):
        path = Path(raw[len(IMAGE_PREFIX) :].strip()).expanduser()
        try:
            return ImageContent(decode_image(path))
        except (OSError, RuntimeError) as exc:
            raise MemeError(f"cannot read image {path}: {exc}") from exc
    return TextContent(raw)


def parse_content_items(inputs: list[str], resolve_template: TemplateResolver) -> list[MemeContent]:
    return [parse_content_item(raw, resolve_template) for raw in inputs]
