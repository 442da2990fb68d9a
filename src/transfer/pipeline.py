"""Signed-URL transfer pipeline.

This module moves file bytes to and from Notion's object storage. Uploads
request a single-use slot for an existing block and stream the file to the
signed PUT URL; downloads exchange a stored object URL for a signed GET URL
and stream the body to disk. Bytes are never buffered whole in memory.

Progress reporting is advisory: callbacks receive byte counts but cannot
change control flow. Cancellation is requested through a threading.Event
and surfaces as TransferCancelledError, a transport failure.
"""

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional, Union
from urllib.parse import unquote, urlparse

import requests
from requests.exceptions import RequestException

from src.notion_api.errors import (
    FileSystemError,
    RemoteRejectedError,
    TransferCancelledError,
    TransportFailureError,
    UploadError,
)
from src.notion_api.models import BlockPointer, SignedUrlRequest
from src.notion_api.session import NotionSession
from src.notion_api.transport import sanitize_secrets

from .formatting import guess_mime_type

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_TRANSFER_TIMEOUT = 300


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a completed upload.

    Attributes:
        url: Permanent object URL to store on the block
        signed_get_url: Short-lived read URL for the new object
        content_length: Bytes sent
        mime_type: Content-Type sent with the PUT
        file_name: Name the object was registered under
    """
    url: str
    signed_get_url: str
    content_length: int
    mime_type: str
    file_name: str


class ProgressReader:
    """File wrapper that reports progress and honors cancellation.

    Exposes ``__len__`` so requests sends an exact Content-Length instead of
    chunked encoding, which signed PUT URLs reject.
    """

    def __init__(
        self,
        stream: BinaryIO,
        length: int,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        operation: str = "upload",
    ):
        self._stream = stream
        self._length = length
        self._progress = progress
        self._cancel = cancel
        self._chunk_size = chunk_size
        self._operation = operation
        self.bytes_read = 0

    def __len__(self) -> int:
        return self._length

    def read(self, size: int = -1) -> bytes:
        if self._cancel is not None and self._cancel.is_set():
            raise TransferCancelledError(self._operation)
        if size is None or size < 0:
            size = self._chunk_size
        chunk = self._stream.read(size)
        if chunk:
            self.bytes_read += len(chunk)
            if self._progress is not None:
                self._progress(len(chunk))
        return chunk

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(self._chunk_size)
            if not chunk:
                return
            yield chunk


def filename_from_url(url: str) -> str:
    """Last path segment of a URL, percent-decoded."""
    path = urlparse(url).path
    segment = path.rstrip('/').rsplit('/', 1)[-1]
    return unquote(segment)


def check_local_name(name: str, source: str) -> str:
    """Reject names that are not a single plain path component.

    Raises:
        FileSystemError: If the name is empty, '.', '..' or contains a separator
    """
    if not name or name in ('.', '..') or '/' in name or '\\' in name:
        raise FileSystemError(source, 'resolve_name', f"unsafe file name {name!r}")
    return name


class TransferPipeline:
    """Uploads and downloads file bytes through signed URLs.

    Example:
        >>> pipeline = TransferPipeline(session)
        >>> result = pipeline.upload(Path("notes.txt"), block_id, space_id)
        >>> builder.attach_file(block_id, space_id, result.url, result.file_name,
        ...                     result.content_length)
    """

    def __init__(
        self,
        session: NotionSession,
        http: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TRANSFER_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """Initialize the pipeline.

        Args:
            session: NotionSession used for slot and signed-URL requests
            http: requests Session for storage traffic (separate from the API)
            timeout: Per-request timeout for PUT/GET in seconds
            chunk_size: Read/write chunk size in bytes
        """
        self.session = session
        self.http = http or requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def upload(
        self,
        file_path: Union[str, Path],
        block_id: str,
        space_id: str,
        file_name: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> UploadResult:
        """Upload a local file into an existing block's storage slot.

        Args:
            file_path: Local file to upload
            block_id: Block that will own the object (must already exist)
            space_id: Workspace of the block
            file_name: Name to register the object under (defaults to basename)
            progress: Called with the size of each chunk sent
            cancel: Event that aborts the transfer when set

        Returns:
            UploadResult with the public object URL and byte length

        Raises:
            FileSystemError: If the file cannot be read
            UploadError: If the PUT fails; the slot is spent and a retry
                         must request a new one
            TransportFailureError, RemoteRejectedError, MalformedResponseError:
                         If the slot request fails
        """
        path = Path(file_path)
        name = file_name or path.name
        try:
            content_length = os.path.getsize(path)
        except OSError as e:
            raise FileSystemError(str(path), 'stat', str(e)) from e
        mime_type = guess_mime_type(path)

        slot = self.session.request_upload_slot(
            name,
            mime_type,
            content_length,
            BlockPointer(id=block_id, space_id=space_id),
        )
        logger.info(f"url = {slot.url}")
        logger.info(f"signed_get_url = {sanitize_secrets(slot.signed_get_url)}")
        logger.debug(f"signed_put_url = {slot.signed_put_url}")

        operation = f"upload({block_id})"
        try:
            with open(path, 'rb') as f:
                body = ProgressReader(
                    f, content_length, progress, cancel, self.chunk_size, operation
                )
                self._put(slot.signed_put_url, body, content_length, mime_type, operation)
        except OSError as e:
            raise FileSystemError(str(path), 'read', str(e)) from e
        except TransferCancelledError:
            raise
        except (TransportFailureError, RemoteRejectedError) as e:
            raise UploadError(str(path), block_id, e) from e

        logger.debug(f"Put {content_length} bytes for block {block_id}")
        return UploadResult(
            url=slot.url,
            signed_get_url=slot.signed_get_url,
            content_length=content_length,
            mime_type=mime_type,
            file_name=name,
        )

    def _put(
        self,
        url: str,
        body: ProgressReader,
        content_length: int,
        mime_type: str,
        operation: str,
    ) -> None:
        headers = {
            'Content-Length': str(content_length),
            'Content-Type': mime_type,
        }
        try:
            response = self.http.put(url, data=body, headers=headers, timeout=self.timeout)
            body_text = response.text
        except RequestException as e:
            raise TransportFailureError(operation, sanitize_secrets(str(e))) from e

        if not 200 <= response.status_code < 300:
            raise RemoteRejectedError(operation, response.status_code, body_text)

    def download(
        self,
        file_url: str,
        block_id: str,
        space_id: str,
        file_token: str,
        output_dir: Union[str, Path],
        output_name: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Path:
        """Download a stored object to a local directory.

        The file name is the last path segment of the signed URL (which can
        differ from the name the file was attached under) unless
        ``output_name`` is given.

        Args:
            file_url: Stored object URL (as attached to the block)
            block_id: Block holding the attachment (permission record)
            space_id: Workspace of the block
            file_token: Short-lived ``file_token`` cookie for storage access
            output_dir: Directory to write into (created if missing)
            output_name: Explicit file name
            progress: Called with the size of each chunk written
            cancel: Event that aborts the transfer when set

        Returns:
            Path of the written file

        Raises:
            FileSystemError: If the output cannot be written
            TransportFailureError, RemoteRejectedError, MalformedResponseError
        """
        signed_url = self.session.request_download_urls([
            SignedUrlRequest(url=file_url, pointer=BlockPointer(id=block_id, space_id=space_id))
        ])[0]
        logger.debug(f"signed url = {sanitize_secrets(signed_url)}")

        if output_name is not None:
            name = check_local_name(output_name, output_name)
        else:
            name = check_local_name(filename_from_url(signed_url), sanitize_secrets(signed_url))

        out_dir = Path(output_dir)
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(str(out_dir), 'create_directory', str(e)) from e

        destination = out_dir / name
        if destination.resolve().parent != out_dir.resolve():
            raise FileSystemError(str(destination), 'resolve_name', 'outside the output directory')
        partial = destination.with_name(destination.name + '.part')
        operation = f"download({block_id})"

        try:
            response = self.http.get(
                signed_url,
                headers={'Cookie': f'file_token={file_token}'},
                stream=True,
                timeout=self.timeout,
            )
        except RequestException as e:
            raise TransportFailureError(operation, sanitize_secrets(str(e))) from e

        try:
            if not 200 <= response.status_code < 300:
                raise RemoteRejectedError(operation, response.status_code, response.text)
            self._write_stream(response, partial, operation, progress, cancel)
            os.replace(partial, destination)
        except OSError as e:
            partial.unlink(missing_ok=True)
            raise FileSystemError(str(destination), 'write', str(e)) from e
        except Exception:
            partial.unlink(missing_ok=True)
            raise
        finally:
            response.close()

        logger.info(f"Saved {destination}")
        return destination

    def _write_stream(
        self,
        response: requests.Response,
        partial: Path,
        operation: str,
        progress: Optional[ProgressCallback],
        cancel: Optional[threading.Event],
    ) -> None:
        with open(partial, 'wb') as f:
            try:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if cancel is not None and cancel.is_set():
                        raise TransferCancelledError(operation)
                    if not chunk:
                        continue
                    f.write(chunk)
                    if progress is not None:
                        progress(len(chunk))
            except RequestException as e:
                raise TransportFailureError(operation, sanitize_secrets(str(e))) from e

    def locate_attachment(self, page_id: str, file_url: str) -> Optional[str]:
        """Find the live block on a page whose source is ``file_url``.

        Only needed when a download is requested by URL without a known
        block id; the local file store normally tracks the mapping.
        """
        for block in self.session.iter_page_blocks(page_id):
            if block.alive and block.source_url == file_url:
                return block.id
        return None
