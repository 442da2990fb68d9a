"""Unit tests for transfer.pipeline module."""

import io
import threading

import pytest
import requests

from src.notion_api.errors import (
    FileSystemError,
    RemoteRejectedError,
    TransferCancelledError,
    TransportFailureError,
    UploadError,
)
from src.notion_api.models import BlockRecord
from src.transfer.pipeline import (
    ProgressReader,
    TransferPipeline,
    check_local_name,
    filename_from_url,
)
from tests.fixtures.notion_fixtures import (
    BLOCK_ID,
    OBJECT_URL,
    PAGE_ID,
    SIGNED_GET_URL,
    SIGNED_PUT_URL,
    SPACE_ID,
    RecordingHttp,
    block_payload,
    make_response,
    sample_chunk,
)


@pytest.fixture
def notes_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"x" * 2048)
    return path


class TestProgressReader:
    """Test cases for ProgressReader."""

    def test_reports_length_and_progress(self):
        """len() is the declared size and every chunk advances progress."""
        seen = []
        reader = ProgressReader(io.BytesIO(b"abcdef"), 6, progress=seen.append, chunk_size=4)

        assert len(reader) == 6
        assert b"".join(reader) == b"abcdef"
        assert seen == [4, 2]
        assert reader.bytes_read == 6

    def test_cancellation_stops_reading(self):
        """A set cancel event raises TransferCancelledError on the next read."""
        cancel = threading.Event()
        reader = ProgressReader(io.BytesIO(b"abcdef"), 6, cancel=cancel, chunk_size=2)

        assert reader.read(2) == b"ab"
        cancel.set()
        with pytest.raises(TransferCancelledError):
            reader.read(2)


class TestFilenameFromUrl:
    """Test cases for filename_from_url."""

    def test_last_segment_without_query(self):
        """The query string is not part of the name."""
        assert filename_from_url(SIGNED_GET_URL) == "notes.txt"

    def test_percent_decoding(self):
        """Encoded characters are decoded."""
        assert filename_from_url("https://x.test/a/my%20file.pdf?sig=1") == "my file.pdf"

    def test_encoded_separators_are_decoded_not_split(self):
        """An encoded slash survives decoding, so callers must check the result."""
        assert filename_from_url("https://x.test/x/..%2F..%2Fescaped.txt?sig=1") == "../../escaped.txt"


class TestCheckLocalName:
    """Test cases for check_local_name."""

    @pytest.mark.parametrize("name", ["", ".", "..", "../escaped.txt", "a/b.txt", "a\\b.txt"])
    def test_rejects_unsafe_names(self, name):
        """Empty, dot and multi-component names are rejected."""
        with pytest.raises(FileSystemError):
            check_local_name(name, "source")

    def test_accepts_plain_name(self):
        assert check_local_name("my file.pdf", "source") == "my file.pdf"


class TestUpload:
    """Test cases for TransferPipeline.upload."""

    def test_notes_txt_end_to_end(self, mock_session, notes_file):
        """A 2048-byte text file is PUT with exact length and content type."""
        http = RecordingHttp()
        pipeline = TransferPipeline(mock_session, http=http)

        result = pipeline.upload(notes_file, BLOCK_ID, SPACE_ID)

        args = mock_session.request_upload_slot.call_args.args
        assert args[:3] == ("notes.txt", "text/plain", 2048)
        assert args[3].id == BLOCK_ID
        (put,) = http.puts
        assert put["url"] == SIGNED_PUT_URL
        assert put["headers"] == {"Content-Length": "2048", "Content-Type": "text/plain"}
        assert put["declared_length"] == 2048
        assert put["body"] == b"x" * 2048
        assert result.url == OBJECT_URL
        assert result.content_length == 2048
        assert result.file_name == "notes.txt"

    def test_file_name_override(self, mock_session, notes_file):
        """The object can be registered under another name."""
        pipeline = TransferPipeline(mock_session, http=RecordingHttp())

        result = pipeline.upload(notes_file, BLOCK_ID, SPACE_ID, file_name="docs/notes.txt")

        assert mock_session.request_upload_slot.call_args.args[0] == "docs/notes.txt"
        assert result.file_name == "docs/notes.txt"

    def test_progress_totals_file_size(self, mock_session, notes_file):
        """Progress callbacks add up to the file size."""
        seen = []
        pipeline = TransferPipeline(mock_session, http=RecordingHttp(), chunk_size=1000)

        pipeline.upload(notes_file, BLOCK_ID, SPACE_ID, progress=seen.append)

        assert sum(seen) == 2048

    def test_missing_file_raises_before_slot_request(self, mock_session, tmp_path):
        """A missing file fails locally without a remote call."""
        pipeline = TransferPipeline(mock_session, http=RecordingHttp())

        with pytest.raises(FileSystemError):
            pipeline.upload(tmp_path / "missing.txt", BLOCK_ID, SPACE_ID)

        mock_session.request_upload_slot.assert_not_called()

    def test_put_rejection_becomes_upload_error(self, mock_session, notes_file):
        """A non-2xx PUT is raised as UploadError naming file and block."""
        http = RecordingHttp(put_response=make_response(403, "AccessDenied"))
        pipeline = TransferPipeline(mock_session, http=http)

        with pytest.raises(UploadError) as exc_info:
            pipeline.upload(notes_file, BLOCK_ID, SPACE_ID)

        assert exc_info.value.block_id == BLOCK_ID
        assert isinstance(exc_info.value.cause, RemoteRejectedError)

    def test_cancelled_upload_is_not_wrapped(self, mock_session, notes_file):
        """Cancellation surfaces as TransferCancelledError."""
        cancel = threading.Event()
        cancel.set()
        pipeline = TransferPipeline(mock_session, http=RecordingHttp())

        with pytest.raises(TransferCancelledError):
            pipeline.upload(notes_file, BLOCK_ID, SPACE_ID, cancel=cancel)


class TestDownload:
    """Test cases for TransferPipeline.download."""

    def test_writes_file_named_after_signed_url(self, mock_session, tmp_path):
        """The body is streamed to <dir>/<last URL segment> with the file_token cookie."""
        mock_session.request_download_urls.return_value = [SIGNED_GET_URL]
        http = RecordingHttp(get_response=make_response(200, "", [b"hello ", b"", b"world"]))
        pipeline = TransferPipeline(mock_session, http=http)

        path = pipeline.download(OBJECT_URL, BLOCK_ID, SPACE_ID, "ft", tmp_path / "out")

        assert path == tmp_path / "out" / "notes.txt"
        assert path.read_bytes() == b"hello world"
        assert not (tmp_path / "out" / "notes.txt.part").exists()
        (get,) = http.gets
        assert get["url"] == SIGNED_GET_URL
        assert get["headers"] == {"Cookie": "file_token=ft"}
        assert get["stream"] is True
        request = mock_session.request_download_urls.call_args.args[0][0]
        assert request.url == OBJECT_URL
        assert request.pointer.id == BLOCK_ID
        http.get_response.close.assert_called_once()

    def test_output_name_override(self, mock_session, tmp_path):
        """An explicit output name replaces the URL-derived one."""
        mock_session.request_download_urls.return_value = [SIGNED_GET_URL]
        http = RecordingHttp(get_response=make_response(200, "", [b"data"]))
        pipeline = TransferPipeline(mock_session, http=http)

        path = pipeline.download(OBJECT_URL, BLOCK_ID, SPACE_ID, "ft", tmp_path, output_name="copy.txt")

        assert path == tmp_path / "copy.txt"

    def test_traversal_in_signed_url_is_rejected(self, mock_session, tmp_path):
        """A decoded '../' in the signed URL never writes outside the output directory."""
        mock_session.request_download_urls.return_value = [
            "https://files.test/x/..%2F..%2Fescaped.txt?sig=1"
        ]
        http = RecordingHttp(get_response=make_response(200, "", [b"data"]))
        out_dir = tmp_path / "a" / "b" / "out"
        pipeline = TransferPipeline(mock_session, http=http)

        with pytest.raises(FileSystemError):
            pipeline.download(OBJECT_URL, BLOCK_ID, SPACE_ID, "ft", out_dir)

        assert not (tmp_path / "a" / "escaped.txt").exists()
        assert http.gets == []

    @pytest.mark.parametrize("output_name", ["../escaped.txt", "..", "sub/x.txt"])
    def test_unsafe_output_name_is_rejected(self, mock_session, tmp_path, output_name):
        """An explicit output name must be a plain file name."""
        mock_session.request_download_urls.return_value = [SIGNED_GET_URL]
        http = RecordingHttp(get_response=make_response(200, "", [b"data"]))
        pipeline = TransferPipeline(mock_session, http=http)

        with pytest.raises(FileSystemError):
            pipeline.download(
                OBJECT_URL, BLOCK_ID, SPACE_ID, "ft", tmp_path / "out", output_name=output_name
            )

        assert http.gets == []

    def test_rejected_download_leaves_no_file(self, mock_session, tmp_path):
        """A non-2xx GET raises and writes nothing."""
        mock_session.request_download_urls.return_value = [SIGNED_GET_URL]
        http = RecordingHttp(get_response=make_response(403, "expired"))
        pipeline = TransferPipeline(mock_session, http=http)

        with pytest.raises(RemoteRejectedError):
            pipeline.download(OBJECT_URL, BLOCK_ID, SPACE_ID, "ft", tmp_path)

        assert list(tmp_path.iterdir()) == []

    def test_broken_stream_removes_partial_file(self, mock_session, tmp_path):
        """A connection drop mid-stream removes the .part file."""
        mock_session.request_download_urls.return_value = [SIGNED_GET_URL]

        def chunks():
            yield b"partial"
            raise requests.ConnectionError("reset")

        response = make_response(200, "")
        response.iter_content.return_value = chunks()
        pipeline = TransferPipeline(mock_session, http=RecordingHttp(get_response=response))

        with pytest.raises(TransportFailureError):
            pipeline.download(OBJECT_URL, BLOCK_ID, SPACE_ID, "ft", tmp_path)

        assert list(tmp_path.iterdir()) == []


class TestLocateAttachment:
    """Test cases for TransferPipeline.locate_attachment."""

    def test_finds_live_block_with_source(self, mock_session):
        """The live block whose source is the URL is returned."""
        dead = BlockRecord.from_dict(block_payload("aaaaaaaa-0000-4000-8000-000000000000", OBJECT_URL, alive=False))
        live = BlockRecord.from_dict(block_payload(BLOCK_ID, OBJECT_URL))
        mock_session.iter_page_blocks.return_value = iter([dead, live])
        pipeline = TransferPipeline(mock_session, http=RecordingHttp())

        assert pipeline.locate_attachment(PAGE_ID, OBJECT_URL) == BLOCK_ID

    def test_returns_none_when_absent(self, mock_session):
        """No matching block yields None."""
        mock_session.iter_page_blocks.return_value = iter(sample_chunk([]).blocks)
        pipeline = TransferPipeline(mock_session, http=RecordingHttp())

        assert pipeline.locate_attachment(PAGE_ID, OBJECT_URL) is None
