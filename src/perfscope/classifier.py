"""Resource type classification from MIME type, falling back to the URL extension."""

from __future__ import annotations

from urllib.parse import urlsplit

from perfscope.types import ResourceType

# Checked in order; the first substring hit wins.
_MIME_RULES: tuple[tuple[tuple[str, ...], ResourceType], ...] = (
    (("html",), ResourceType.DOCUMENT),
    (("css",), ResourceType.STYLESHEET),
    (("javascript", "ecmascript"), ResourceType.SCRIPT),
    (("image",), ResourceType.IMAGE),
    (("font", "woff"), ResourceType.FONT),
    (("json", "xml"), ResourceType.XHR),
    (("video", "audio"), ResourceType.MEDIA),
)

_EXTENSION_RULES: dict[str, ResourceType] = {
    ".js": ResourceType.SCRIPT,
    ".mjs": ResourceType.SCRIPT,
    ".css": ResourceType.STYLESHEET,
    ".png": ResourceType.IMAGE,
    ".jpg": ResourceType.IMAGE,
    ".jpeg": ResourceType.IMAGE,
    ".gif": ResourceType.IMAGE,
    ".webp": ResourceType.IMAGE,
    ".avif": ResourceType.IMAGE,
    ".svg": ResourceType.IMAGE,
    ".ico": ResourceType.IMAGE,
    ".woff": ResourceType.FONT,
    ".woff2": ResourceType.FONT,
    ".ttf": ResourceType.FONT,
    ".otf": ResourceType.FONT,
}


def classify(mime_type: str | None, url: str) -> ResourceType:
    """Classify a resource. Always returns a value."""
    if mime_type:
        lowered = mime_type.lower()
        for needles, resource_type in _MIME_RULES:
            if any(needle in lowered for needle in needles):
                return resource_type
        return ResourceType.OTHER

    return _classify_by_extension(url)


def _classify_by_extension(url: str) -> ResourceType:
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return ResourceType.OTHER
    dot = path.rfind(".")
    if dot == -1 or "/" in path[dot:]:
        return ResourceType.OTHER
    return _EXTENSION_RULES.get(path[dot:], ResourceType.OTHER)


def mime_from_content_type(content_type: str | None) -> str | None:
    """Strip parameters from a Content-Type header value."""
    if not content_type:
        return None
    mime = content_type.split(";", 1)[0].strip()
    return mime or None
