"""Image helpers: base64 encoding, MIME detection and data URIs.

Provides:
- ``encode_bytes_to_base64(raw)``: base64 string without the data URI prefix.
- ``is_valid_base64(data)``: strict base64 check for posted payloads.
- ``get_mimetype(filename)``: MIME type guessed from the file name.
- ``build_data_uri(content_type, data)``: ``data:{type};base64,{data}``.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes


def encode_bytes_to_base64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("utf-8")


def is_valid_base64(data: str) -> bool:
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def get_mimetype(filename: str) -> str:
    """
    Return mimetype string for given file name.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        raise ValueError(f"Could not determine MIME type for file: {filename}")
    return mime_type


def build_data_uri(content_type: str, data: str) -> str:
    return f"data:{content_type};base64,{data}"

