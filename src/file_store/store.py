"""SQLite-backed store of attached files.

Maps a unique file name to the Notion block and object URL it was attached
to, so that files can be found and downloaded later without scanning pages.

The name check done before an upload (``exists_by_name``) and the final
``insert`` are not atomic: two concurrent puts of the same name can both
pass the check, and the loser fails at insert after its upload completed.
"""

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Union

from .errors import DuplicateFileNameError, RecordNotFoundError, StoreAccessError
from .models import FileRecord

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS files (
        file_name TEXT NOT NULL,
        file_url TEXT NOT NULL,
        space_id TEXT NOT NULL,
        block_id TEXT NOT NULL,
        origin_file_path TEXT NOT NULL,
        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (file_name)
    )
"""

_COLUMNS = "file_name, file_url, space_id, block_id, origin_file_path, created_at"


def _row_to_record(row: tuple) -> FileRecord:
    file_name, file_url, space_id, block_id, origin_file_path, created_at = row
    return FileRecord(
        file_name=file_name,
        file_url=file_url,
        space_id=space_id,
        block_id=block_id,
        origin_file_path=origin_file_path,
        created_at=datetime.fromisoformat(created_at),
    )


class FileStore:
    """Keyed record store for attached files.

    Uses a fresh SQLite connection per operation, guarded by a lock, so one
    store can be shared by concurrent upload workers.

    Example:
        >>> store = FileStore(Path("~/.notion-attach/files.db").expanduser())
        >>> store.insert(record)
        >>> store.query_by_prefix("backups/")
    """

    def __init__(self, db_path: Union[str, Path]):
        """Open (and create if needed) the database.

        Args:
            db_path: Path to the SQLite database file

        Raises:
            StoreAccessError: If the database cannot be created
        """
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._init_database()

    def _connect(self, operation: str) -> sqlite3.Connection:
        try:
            return sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise StoreAccessError(str(self.db_path), operation, str(e)) from e

    def _init_database(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreAccessError(str(self.db_path), 'create_directory', str(e)) from e

        with self._lock:
            conn = self._connect('migrate')
            try:
                conn.execute(SCHEMA)
                conn.commit()
            except sqlite3.Error as e:
                raise StoreAccessError(str(self.db_path), 'migrate', str(e)) from e
            finally:
                conn.close()

    def insert(self, record: FileRecord) -> None:
        """Insert a record.

        Raises:
            DuplicateFileNameError: If the file name is already stored
            StoreAccessError: If the write fails
        """
        with self._lock:
            conn = self._connect('insert')
            try:
                conn.execute(
                    f"INSERT INTO files ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        record.file_name,
                        record.file_url,
                        record.space_id,
                        record.block_id,
                        record.origin_file_path,
                        record.created_at.isoformat(sep=' '),
                    ),
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                raise DuplicateFileNameError(record.file_name) from e
            except sqlite3.Error as e:
                raise StoreAccessError(str(self.db_path), 'insert', str(e)) from e
            finally:
                conn.close()
        logger.debug(f"Recorded {record.file_name} -> block {record.block_id}")

    def exists_by_name(self, file_name: str) -> bool:
        """Check whether a file name is already stored."""
        with self._lock:
            conn = self._connect('exists')
            try:
                row = conn.execute(
                    "SELECT EXISTS (SELECT 1 FROM files WHERE file_name = ?)",
                    (file_name,),
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreAccessError(str(self.db_path), 'exists', str(e)) from e
            finally:
                conn.close()
        return bool(row[0])

    def find_by_name(self, file_name: str) -> FileRecord:
        """Fetch the record with exactly this file name.

        Raises:
            RecordNotFoundError: If no record matches
        """
        with self._lock:
            conn = self._connect('find')
            try:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM files WHERE file_name = ?",
                    (file_name,),
                ).fetchone()
            except sqlite3.Error as e:
                raise StoreAccessError(str(self.db_path), 'find', str(e)) from e
            finally:
                conn.close()

        if row is None:
            raise RecordNotFoundError(file_name)
        return _row_to_record(row)

    def query_by_prefix(self, prefix: str) -> List[FileRecord]:
        """List records whose file name starts with ``prefix``, ordered by name.

        The match is literal and case-sensitive.
        """
        with self._lock:
            conn = self._connect('query')
            try:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM files WHERE substr(file_name, 1, ?) = ? "
                    "ORDER BY file_name",
                    (len(prefix), prefix),
                ).fetchall()
            except sqlite3.Error as e:
                raise StoreAccessError(str(self.db_path), 'query', str(e)) from e
            finally:
                conn.close()
        return [_row_to_record(row) for row in rows]
