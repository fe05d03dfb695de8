"""Decoding of base64 data URIs into uploadable attachments."""

import base64
import binascii
from dataclasses import dataclass

from claude_web_proxy.exceptions import InvalidEncoding, MalformedAttachment


FILENAMES_BY_CONTENT_TYPE = {
    "image/jpeg": "image.jpg",
    "image/png": "image.png",
    "application/pdf": "document.pdf",
}
GENERIC_FILENAME = "file"


@dataclass(frozen=True)
class DecodedAttachment:
    content_type: str
    filename: str
    data: bytes


def filename_for_content_type(content_type: str) -> str:
    """Display filename the backend expects for a content type."""
    return FILENAMES_BY_CONTENT_TYPE.get(content_type, GENERIC_FILENAME)


def parse_data_uri(data_uri: str) -> DecodedAttachment:
    """Decode ``data:<content-type>;base64,<payload>``.

    Raises:
        MalformedAttachment: scheme, content-type delimiter, encoding marker or
            comma missing
        InvalidEncoding: marker is not ``base64`` or the payload does not decode
    """
    header, sep, payload = data_uri.partition(",")
    if not sep:
        raise MalformedAttachment("Invalid file data format: missing ','")

    scheme, sep, meta = header.partition(":")
    if not sep or scheme != "data":
        raise MalformedAttachment(
            "Invalid content type in file data: missing 'data:'"
        )

    content_type, sep, encoding = meta.partition(";")
    if not sep or not content_type:
        raise MalformedAttachment("Invalid content type in file data: missing ';'")
    if not encoding:
        raise MalformedAttachment("Invalid encoding in file data: missing marker")
    if encoding != "base64":
        raise InvalidEncoding(f"Invalid encoding in file data: {encoding!r}")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncoding(f"Failed to decode base64 data: {e}") from e

    return DecodedAttachment(
        content_type=content_type,
        filename=filename_for_content_type(content_type),
        data=data,
    )
