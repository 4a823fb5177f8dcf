"""
OBJ Record Codec
================

Converts between bytes and the record objects of psyq_sdk.obj.records.

Decoding reads one tag byte, looks up the record class and lets it read
its body. The stream finishes at the End record; a stream that runs out
of bytes first is truncated, and bytes after End are reported as
trailing data. Unknown tags are never skipped.

Encoding is the exact inverse, so for any decoded stream:

    encode_records(decode_records(data)) == data
"""

import logging
from typing import Iterable, Optional

from psyq_sdk.binary import ByteReader, ByteWriter
from psyq_sdk.errors import TrailingDataError, UnknownRecordError
from psyq_sdk.obj.records import RECORD_TYPES, End, Record

logger = logging.getLogger(__name__)


def decode_record(reader: ByteReader) -> Record:
    """
    Decode a single record at the reader's position.

    Raises:
        UnknownRecordError: If the tag byte is not a known record type
        TruncatedDataError: If the body runs past the end of the buffer
        DecodeError: For malformed expressions inside a Patch
    """
    start = reader.offset
    reader.tag = None
    tag = reader.u8()
    record_type = RECORD_TYPES.get(tag)
    if record_type is None:
        raise UnknownRecordError(tag, start)
    reader.tag = tag
    record = record_type.decode_body(reader)
    reader.tag = None
    return record


def decode_records(
    data: bytes,
    start: int = 0,
    offsets: Optional[list[int]] = None,
) -> list[Record]:
    """
    Decode records from `start` up to and including the End record.

    Args:
        data: Buffer holding the record stream
        start: Offset of the first record (after any file header)
        offsets: If given, receives the byte offset of each record

    Returns:
        The records in stream order, End included

    Raises:
        TruncatedDataError: If the buffer ends before the End record
        TrailingDataError: If bytes follow the End record
    """
    reader = ByteReader(data, start)
    records: list[Record] = []
    while True:
        if offsets is not None:
            offsets.append(reader.offset)
        record = decode_record(reader)
        records.append(record)
        if isinstance(record, End):
            break
    if not reader.at_end():
        raise TrailingDataError(reader.remaining, reader.offset)
    logger.debug(f"Decoded {len(records)} records from {len(data) - start} bytes")
    return records


def encode_records(records: Iterable[Record]) -> bytes:
    """Encode records in the given order; no End record is added."""
    writer = ByteWriter()
    for record in records:
        record.encode(writer)
    return writer.getvalue()
