"""Reference-image encoding — MIME detection, data-URL stripping, Gemini parts.

Images arrive as a local path, a binary handle, raw bytes, a bare base64
string, or a ``data:<mime>;base64,<payload>`` URL. All of them end up as
an :class:`InlineImage` whose ``data`` is payload-only base64.
"""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from google.genai import types

from .errors import EncodingError

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/png"


@dataclass(frozen=True)
class InlineImage:
    """Transport-safe image: declared MIME type plus payload-only base64."""

    mime_type: str
    data: str

    def to_part(self) -> types.Part:
        """Build the ``inlineData`` part placed ahead of the text parts."""
        return types.Part(
            inline_data=types.Blob(mime_type=self.mime_type, data=base64.b64decode(self.data)),
        )


def is_image_mime(mime_type: str | None) -> bool:
    """Accept only ``image/*`` types (the upload filter)."""
    return bool(mime_type) and mime_type.strip().lower().startswith("image/")


def split_data_url(value: str) -> tuple[str | None, str]:
    """Return ``(mime, payload)`` for a data URL; ``(None, value)`` for bare base64."""
    s = value.strip()
    if s.startswith("data:") and "," in s:
        header, payload = s.split(",", 1)
        mime = header[len("data:"):].split(";", 1)[0] or None
        return mime, payload.strip()
    return None, s


def guess_mime_type(path: Path) -> str | None:
    mime, _ = mimetypes.guess_type(path.name)
    return mime


def encode_bytes(data: bytes, mime_type: str) -> InlineImage:
    return InlineImage(mime_type=mime_type, data=base64.b64encode(data).decode("ascii"))


def encode_image_file(source: str | Path | BinaryIO, mime_type: str | None = None) -> InlineImage:
    """Read an image from disk or an open binary handle and base64-encode it.

    Args:
        source: Filesystem path or readable binary file object.
        mime_type: Declared MIME type. Guessed from the file name when omitted.

    Raises:
        EncodingError: The underlying file could not be read.
    """
    if isinstance(source, (str, Path)):
        path = Path(source).expanduser()
        mime = mime_type or guess_mime_type(path) or DEFAULT_IMAGE_MIME
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise EncodingError(f"Cannot read image {path}: {exc}") from exc
    else:
        name = getattr(source, "name", "")
        mime = mime_type or (guess_mime_type(Path(name)) if name else None) or DEFAULT_IMAGE_MIME
        try:
            raw = source.read()
        except (OSError, ValueError) as exc:
            raise EncodingError(f"Cannot read image stream: {exc}") from exc
    return encode_bytes(raw, mime)


def encode_base64_image(value: str, mime_type: str | None = None) -> InlineImage:
    """Normalize a base64 string or data URL to payload-only base64.

    The data-URL header wins over *mime_type* when both are present.

    Raises:
        EncodingError: The payload is not valid base64.
    """
    header_mime, payload = split_data_url(value)
    compact = "".join(payload.split())
    try:
        base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EncodingError(f"Image payload is not valid base64: {exc}") from exc
    return InlineImage(mime_type=header_mime or mime_type or DEFAULT_IMAGE_MIME, data=compact)


def load_reference_image(
    *,
    image_path: str | None = None,
    image_base64: str | None = None,
    mime_type: str | None = None,
) -> InlineImage | None:
    """Resolve the optional attachment of a tool call, applying the ``image/*`` filter.

    A non-image attachment is dropped with a warning rather than rejected,
    so the generation proceeds as if nothing had been attached.
    """
    if image_path:
        image = encode_image_file(image_path, mime_type)
    elif image_base64:
        image = encode_base64_image(image_base64, mime_type)
    else:
        return None

    if not is_image_mime(image.mime_type):
        logger.warning("Ignoring non-image attachment (%s)", image.mime_type)
        return None
    return image
