"""Chunk receiver: per-upload assembly state and part storage."""

import asyncio
import contextlib
import hashlib
import logging
import os
import shutil
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from src.application.dtos.upload import AssembledFile, ChunkInfo, IncomingFile
from src.application.services.validation import size_limit_message
from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import (
    InvalidChunkException,
    UploadMissingFileException,
    VideoStorageException,
    VideoValidationException,
)
from src.domain.models.upload import UploadSession

_COPY_BUFFER = 1024 * 1024


@dataclass
class ReceiveResult:
    """Outcome of receiving one chunk."""

    session: UploadSession
    assembled: AssembledFile | None = None

    @property
    def is_finished(self) -> bool:
        return self.assembled is not None

    @property
    def percentage_done(self) -> int:
        return 100 if self.is_finished else self.session.percentage_done


def derive_upload_key(client_id: str, field: str, chunk: ChunkInfo) -> str:
    """Identity under which the chunks of one logical upload are grouped.

    Built from the client, the form field and the file signature (name,
    announced size and the protocol's own identifier when it sends one).
    """
    signature = "\x1f".join(
        [
            client_id,
            field,
            chunk.file_name,
            "" if chunk.total_bytes is None else str(chunk.total_bytes),
            chunk.identifier or "",
        ]
    )
    return hashlib.sha256(signature.encode("utf-8")).hexdigest()[:40]


class ChunkReceiver:
    """Collects chunks per upload key and assembles them once complete.

    Session state lives in memory; chunk bytes live under ``work_dir`` as
    one file per chunk index. Chunks for the same key are serialized with
    a per-key lock, different keys proceed independently.
    """

    def __init__(
        self,
        work_dir: Path,
        session_ttl_seconds: int,
        file_field: str = "url_video",
        max_bytes: int | None = None,
    ) -> None:
        """Initialize the receiver.

        Args:
            work_dir: Directory for partial and assembled uploads.
            session_ttl_seconds: Idle time after which a session is reaped.
            file_field: Form field that carries the file.
            max_bytes: Largest file an upload may assemble to, if limited.
        """
        self._work_dir = work_dir
        self._ttl = session_ttl_seconds
        self._file_field = file_field
        self._max_bytes = max_bytes
        self._sessions: dict[str, UploadSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._reaper: asyncio.Task[None] | None = None
        self._logger = get_logger(__name__)
        self._work_dir.mkdir(parents=True, exist_ok=True)

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    def get_session(self, upload_key: str) -> UploadSession | None:
        return self._sessions.get(upload_key)

    def _lock_for(self, upload_key: str) -> asyncio.Lock:
        return self._locks.setdefault(upload_key, asyncio.Lock())

    def _session_dir(self, upload_key: str) -> Path:
        return self._work_dir / upload_key

    # =========================================================================
    # Receiving
    # =========================================================================

    async def receive(
        self,
        upload_key: str,
        chunk: ChunkInfo,
        file: IncomingFile | None,
    ) -> ReceiveResult:
        """Store one chunk and assemble the file if it was the last one.

        Args:
            upload_key: Key from ``derive_upload_key``.
            chunk: Placement of the chunk.
            file: The chunk bytes.

        Returns:
            The updated session, plus the assembled file once complete.
            The caller owns the assembled file and must ``release`` it.

        Raises:
            UploadMissingFileException: If the request carried no file.
            InvalidChunkException: If the chunk contradicts the session.
            VideoStorageException: If chunk data cannot be written locally.
            VideoValidationException: If the upload grew past ``max_bytes``.
        """
        if file is None or not file.filename:
            self._logger.error("Upload missing file", extra={"field": self._file_field})
            raise UploadMissingFileException(self._file_field)

        async with self._lock_for(upload_key):
            session = self._sessions.get(upload_key)
            if session is None:
                session = UploadSession(
                    upload_key=upload_key,
                    file_name=chunk.file_name,
                    total_chunks=chunk.total_chunks,
                    total_bytes=chunk.total_bytes,
                )
                self._logger.debug(
                    "Upload session started",
                    extra={
                        "upload_key": upload_key,
                        "file_name": chunk.file_name,
                        "handler": chunk.handler,
                        "total_chunks": chunk.total_chunks,
                        "total_bytes": chunk.total_bytes,
                    },
                )
            elif session.total_chunks != chunk.total_chunks:
                raise InvalidChunkException(
                    f"upload announced {session.total_chunks} chunks, "
                    f"chunk says {chunk.total_chunks}"
                )

            await self._write_part(upload_key, chunk.index, file)
            session = session.record_part(chunk.index, file.size)
            if self._max_bytes is not None and session.bytes_received > self._max_bytes:
                await self._drop_session(upload_key)
                self._logger.warning(
                    "Upload over size limit, session dropped",
                    extra={
                        "upload_key": upload_key,
                        "bytes_received": session.bytes_received,
                        "max_bytes": self._max_bytes,
                    },
                )
                message = size_limit_message(self._file_field, self._max_bytes)
                raise VideoValidationException({self._file_field: [message]})
            self._sessions[upload_key] = session

            if not session.is_complete:
                return ReceiveResult(session=session)

            try:
                assembled = await self._assemble(session)
            finally:
                await self._drop_session(upload_key)

            return ReceiveResult(session=session, assembled=assembled)

    async def _write_part(
        self,
        upload_key: str,
        index: int,
        file: IncomingFile,
    ) -> None:
        """Write a chunk to its own file; a repeated index replaces it."""
        directory = self._session_dir(upload_key)
        target = directory / f"{index:020d}.part"
        staging = directory / f".{index:020d}.tmp"
        loop = asyncio.get_running_loop()

        def _write() -> None:
            directory.mkdir(parents=True, exist_ok=True)
            with staging.open("wb") as out:
                shutil.copyfileobj(file.stream, out, length=_COPY_BUFFER)
            os.replace(staging, target)

        try:
            await loop.run_in_executor(None, _write)
        except OSError as e:
            raise VideoStorageException(str(target), str(e)) from e

    @timed(level=logging.INFO)
    async def _assemble(self, session: UploadSession) -> AssembledFile:
        """Concatenate all parts in index order into one file."""
        directory = self._session_dir(session.upload_key)
        output = self._work_dir / f"{session.upload_key}.assembled"
        indices = session.received_chunks
        loop = asyncio.get_running_loop()

        def _concat() -> int:
            with output.open("wb") as out:
                for index in indices:
                    with (directory / f"{index:020d}.part").open("rb") as part:
                        shutil.copyfileobj(part, out, length=_COPY_BUFFER)
            return output.stat().st_size

        try:
            size = await loop.run_in_executor(None, _concat)
        except OSError as e:
            output.unlink(missing_ok=True)
            raise VideoStorageException(str(output), str(e)) from e

        if session.total_bytes is not None and size != session.total_bytes:
            output.unlink(missing_ok=True)
            raise InvalidChunkException(
                f"assembled {size} bytes, upload announced {session.total_bytes}"
            )

        self._logger.info(
            "Upload assembled",
            extra={
                "upload_key": session.upload_key,
                "chunks": len(indices),
                "size_bytes": size,
            },
        )
        return AssembledFile(
            path=output,
            original_name=session.file_name,
            size_bytes=size,
        )

    async def release(self, assembled: AssembledFile) -> None:
        """Delete an assembled file once it has been stored elsewhere."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, lambda: assembled.path.unlink(missing_ok=True))

    # =========================================================================
    # Cleanup
    # =========================================================================

    async def _remove_dir(self, directory: Path) -> None:
        loop = asyncio.get_running_loop()

        def _rmtree() -> None:
            with contextlib.suppress(FileNotFoundError):
                shutil.rmtree(directory)

        await loop.run_in_executor(None, _rmtree)

    async def _drop_session(self, upload_key: str) -> UploadSession | None:
        """Forget a session and delete its stored chunks.

        The caller must hold the key's lock.
        """
        session = self._sessions.pop(upload_key, None)
        await self._remove_dir(self._session_dir(upload_key))
        return session

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Remove sessions idle for longer than the TTL.

        Also removes chunk directories no session refers to any more (for
        example after a restart) once they are older than the TTL.

        Returns:
            Number of sessions and orphaned directories removed.
        """
        now = now or datetime.now(UTC)
        purged = 0

        for key in list(self._sessions):
            lock = self._lock_for(key)
            # A chunk is being written, so the session is active
            if lock.locked():
                continue
            async with lock:
                session = self._sessions.get(key)
                if session is None or not session.is_expired(self._ttl, now):
                    continue
                await self._drop_session(key)
            purged += 1
            self._logger.info(
                "Expired upload session removed",
                extra={
                    "upload_key": key,
                    "received_chunks": len(session.parts),
                    "bytes_received": session.bytes_received,
                },
            )

        cutoff = now.timestamp() - self._ttl
        for entry in list(self._work_dir.iterdir()):
            if not entry.is_dir() or entry.name in self._sessions:
                continue
            async with self._lock_for(entry.name):
                # Re-check under the lock: a chunk may have revived the key
                if entry.name in self._sessions or not entry.exists():
                    continue
                if entry.stat().st_mtime >= cutoff:
                    continue
                await self._remove_dir(entry)
            purged += 1
            self._logger.info(
                "Orphaned upload directory removed", extra={"path": str(entry)}
            )

        for key, lock in list(self._locks.items()):
            if key not in self._sessions and not lock.locked():
                del self._locks[key]

        return purged

    def start_reaper(self, interval_seconds: float) -> None:
        """Start the background task that purges expired sessions."""
        if self._reaper is None or self._reaper.done():
            self._reaper = asyncio.create_task(self._reap_forever(interval_seconds))

    async def stop_reaper(self) -> None:
        """Cancel the background reaper, if running."""
        if self._reaper is None:
            return
        self._reaper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._reaper
        self._reaper = None

    async def _reap_forever(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            start = time.perf_counter()
            try:
                purged = await self.purge_expired()
            except OSError:
                self._logger.exception("Upload session reaper failed")
                continue
            if purged:
                self._logger.info(
                    "Upload reaper pass finished",
                    extra={
                        "purged": purged,
                        "active_sessions": self.active_sessions,
                        "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                    },
                )
