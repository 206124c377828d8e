"""
Content Helpers

Small utilities over ``Message.content`` (a string or a list of parts) shared
by the adapters.
"""

import re
from typing import List, Optional, Tuple, Union

from llm_bridge.ir import (
    Base64ImageSource,
    ContentPart,
    ImageContent,
    ImageSource,
    TextContent,
    UrlImageSource,
)

MessageContent = Union[str, List[ContentPart]]

_DATA_URL_RE = re.compile(r"^data:([^;,]+);base64,(.*)$", re.DOTALL)


def content_to_string(content: Optional[MessageContent]) -> Optional[str]:
    """Concatenate text parts; None when there is no text."""
    if content is None:
        return None
    if isinstance(content, str):
        return content or None
    text = "".join(part.text for part in content if isinstance(part, TextContent))
    return text or None


def is_text_only(content: MessageContent) -> bool:
    if isinstance(content, str):
        return True
    return all(isinstance(part, TextContent) for part in content)


def extract_text(content: MessageContent) -> List[str]:
    """Return each text part separately."""
    if isinstance(content, str):
        return [content]
    return [part.text for part in content if isinstance(part, TextContent)]


def has_image_content(content: MessageContent) -> bool:
    if isinstance(content, str):
        return False
    return any(isinstance(part, ImageContent) for part in content)


def parse_data_url(url: str) -> Optional[Tuple[str, str]]:
    """
    Split a ``data:<media>;base64,<data>`` URL.

    Returns:
        (media_type, data), or None when ``url`` is not a base64 data URL
    """
    match = _DATA_URL_RE.match(url)
    if not match:
        return None
    return match.group(1), match.group(2)


def image_source_from_url(url: str) -> ImageSource:
    """Data URLs become inline base64 sources, anything else stays a URL."""
    parsed = parse_data_url(url)
    if parsed:
        return Base64ImageSource(media_type=parsed[0], data=parsed[1])
    return UrlImageSource(url=url)


def image_to_data_url(source: ImageSource) -> str:
    """URL for an image source, inline data rendered as a data URL."""
    if isinstance(source, Base64ImageSource):
        return f"data:{source.media_type};base64,{source.data}"
    return source.url
