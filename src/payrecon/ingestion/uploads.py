"""Uploaded-file ingestion: fetch bytes from the file store and decode them."""

from __future__ import annotations

import logging

from payrecon.core.protocols import IFileStore
from payrecon.ingestion.parser import parse_delimited_text
from payrecon.models.records import ParsedTable

logger = logging.getLogger(__name__)

# TBMS exports are usually UTF-8 (sometimes with BOM); older ones are Turkish Windows-1254.
STRICT_ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp1254")


def decode_upload(data: bytes) -> str:
    for encoding in STRICT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("latin-1")


def read_uploaded_text(file_store: IFileStore, path: str) -> str:
    """Return the decoded text content of an uploaded file."""
    data = file_store.read(path)
    logger.info("Read upload path=%s bytes=%d", path, len(data))
    return decode_upload(data)


def parse_upload(file_store: IFileStore, path: str) -> ParsedTable:
    """Uploaded files go through exactly the same parser as pasted text."""
    return parse_delimited_text(read_uploaded_text(file_store, path))
