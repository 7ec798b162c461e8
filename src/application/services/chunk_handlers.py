"""Chunk request handlers.

Browsers upload large files with one of a few client libraries, each of
which describes the chunk position differently. A handler recognises one
such protocol from the request fields and headers and turns it into a
``ChunkInfo``. Requests carrying no chunk metadata are treated as a single
chunk holding the whole file.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import ClassVar

from src.application.dtos.upload import ChunkInfo, IncomingFile
from src.domain.exceptions import InvalidChunkException

_CONTENT_RANGE = re.compile(r"^bytes (\d+)-(\d+)/(\d+)$")


def _optional_int(
    fields: Mapping[str, str],
    name: str,
    *,
    minimum: int = 0,
) -> int | None:
    raw = fields.get(name)
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise InvalidChunkException(f"field '{name}' must be an integer") from None
    if value < minimum:
        raise InvalidChunkException(f"field '{name}' must be at least {minimum}")
    return value


def _required_int(fields: Mapping[str, str], name: str, *, minimum: int = 0) -> int:
    value = _optional_int(fields, name, minimum=minimum)
    if value is None:
        raise InvalidChunkException(f"missing field '{name}'")
    return value


class ChunkHandler(ABC):
    """Parses chunk placement for one upload protocol."""

    name: ClassVar[str]

    @classmethod
    @abstractmethod
    def can_handle(
        cls,
        fields: Mapping[str, str],
        headers: Mapping[str, str],
    ) -> bool:
        """Whether the request uses this handler's protocol.

        Args:
            fields: Non-file form fields.
            headers: Request headers with lower-cased names.
        """

    @abstractmethod
    def parse(
        self,
        fields: Mapping[str, str],
        headers: Mapping[str, str],
        file: IncomingFile,
    ) -> ChunkInfo:
        """Describe the chunk carried by the request.

        Raises:
            InvalidChunkException: If the chunk metadata is inconsistent.
        """


class ResumableJSHandler(ChunkHandler):
    """Resumable.js: 1-based ``resumableChunkNumber`` of ``resumableTotalChunks``."""

    name = "resumable.js"

    @classmethod
    def can_handle(cls, fields: Mapping[str, str], headers: Mapping[str, str]) -> bool:
        return "resumableChunkNumber" in fields

    def parse(
        self,
        fields: Mapping[str, str],
        headers: Mapping[str, str],
        file: IncomingFile,
    ) -> ChunkInfo:
        number = _required_int(fields, "resumableChunkNumber", minimum=1)
        total = _required_int(fields, "resumableTotalChunks", minimum=1)
        if number > total:
            raise InvalidChunkException(f"chunk {number} is beyond total {total}")

        return ChunkInfo(
            index=number - 1,
            file_name=fields.get("resumableFilename") or file.filename,
            total_chunks=total,
            total_bytes=_optional_int(fields, "resumableTotalSize"),
            identifier=fields.get("resumableIdentifier") or None,
            handler=self.name,
        )


class DropZoneHandler(ChunkHandler):
    """Dropzone: 0-based ``dzchunkindex`` out of ``dztotalchunkcount``."""

    name = "dropzone"

    @classmethod
    def can_handle(cls, fields: Mapping[str, str], headers: Mapping[str, str]) -> bool:
        return "dzchunkindex" in fields

    def parse(
        self,
        fields: Mapping[str, str],
        headers: Mapping[str, str],
        file: IncomingFile,
    ) -> ChunkInfo:
        index = _required_int(fields, "dzchunkindex")
        total = _required_int(fields, "dztotalchunkcount", minimum=1)
        if index >= total:
            raise InvalidChunkException(f"chunk index {index} is beyond total {total}")

        return ChunkInfo(
            index=index,
            file_name=file.filename,
            total_chunks=total,
            total_bytes=_optional_int(fields, "dztotalfilesize"),
            identifier=fields.get("dzuuid") or None,
            handler=self.name,
        )


class ContentRangeHandler(ChunkHandler):
    """``Content-Range: bytes start-end/total``; parts are keyed by byte offset."""

    name = "content-range"

    @classmethod
    def can_handle(cls, fields: Mapping[str, str], headers: Mapping[str, str]) -> bool:
        return "content-range" in headers

    def parse(
        self,
        fields: Mapping[str, str],
        headers: Mapping[str, str],
        file: IncomingFile,
    ) -> ChunkInfo:
        match = _CONTENT_RANGE.match(headers["content-range"].strip())
        if match is None:
            raise InvalidChunkException(
                f"unsupported Content-Range '{headers['content-range']}'"
            )

        start, end, total = (int(group) for group in match.groups())
        if start > end or end >= total:
            raise InvalidChunkException(f"range {start}-{end} does not fit in {total}")
        if end - start + 1 != file.size:
            raise InvalidChunkException(
                f"range {start}-{end} announces {end - start + 1} bytes, "
                f"got {file.size}"
            )

        return ChunkInfo(
            index=start,
            file_name=file.filename,
            total_bytes=total,
            handler=self.name,
        )


class SingleUploadHandler(ChunkHandler):
    """Plain multipart upload: the chunk is the whole file."""

    name = "single"

    @classmethod
    def can_handle(cls, fields: Mapping[str, str], headers: Mapping[str, str]) -> bool:
        return True

    def parse(
        self,
        fields: Mapping[str, str],
        headers: Mapping[str, str],
        file: IncomingFile,
    ) -> ChunkInfo:
        return ChunkInfo(
            index=0,
            file_name=file.filename,
            total_chunks=1,
            total_bytes=file.size,
            handler=self.name,
        )


HANDLERS: tuple[type[ChunkHandler], ...] = (
    ResumableJSHandler,
    DropZoneHandler,
    ContentRangeHandler,
)


def handler_for_request(
    fields: Mapping[str, str],
    headers: Mapping[str, str],
) -> ChunkHandler:
    """Pick the handler matching the request, falling back to a single upload."""
    lowered = {key.lower(): value for key, value in headers.items()}
    for handler_cls in HANDLERS:
        if handler_cls.can_handle(fields, lowered):
            return handler_cls()
    return SingleUploadHandler()


def parse_chunk(
    fields: Mapping[str, str],
    headers: Mapping[str, str],
    file: IncomingFile,
) -> ChunkInfo:
    """Describe the chunk carried by a request."""
    lowered = {key.lower(): value for key, value in headers.items()}
    return handler_for_request(fields, lowered).parse(fields, lowered, file)
