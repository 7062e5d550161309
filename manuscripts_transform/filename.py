"""
Attachment file names derived from model ids.
"""

from __future__ import annotations

from manuscripts_transform.ids import normalize_id

# Content types whose usual extension is not their subtype
_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/svg+xml": "svg",
    "text/plain": "txt",
}


def extension_for(content_type: str) -> str:
    """``image/png`` → ``png``; the MIME subtype unless overridden above."""
    content_type = content_type.split(";")[0].strip().lower()
    if content_type in _EXTENSIONS:
        return _EXTENSIONS[content_type]
    _, _, subtype = content_type.partition("/")
    return subtype


def generate_attachment_filename(identifier: str, content_type: str | None = None) -> str:
    """``MPFigure:1`` + ``image/png`` → ``MPFigure_1.png``."""
    basename = normalize_id(identifier)
    if not content_type:
        return basename
    extension = extension_for(content_type)
    return f"{basename}.{extension}" if extension else basename
