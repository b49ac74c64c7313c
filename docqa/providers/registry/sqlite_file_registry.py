"""SQLite-backed uploaded-file registry.

Persists :class:`~docqa.models.files.UploadedFile` rows to a local SQLite
database at ``data/files.db`` using ``aiosqlite`` for async I/O.  The
``UNIQUE(file_hash, owner_id)`` constraint makes the database the single
source of truth for "this owner already uploaded these bytes".
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from docqa.interfaces.file_registry import IFileRegistry
from docqa.models.files import UploadedFile
from docqa.utils.errors import ConflictError, WriteFailedError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/files.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS uploaded_files (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    file_name     TEXT    NOT NULL,
    file_hash     TEXT    NOT NULL,
    owner_id      TEXT    NOT NULL,
    content_type  TEXT    NOT NULL,
    size_bytes    INTEGER NOT NULL DEFAULT 0,
    created_at    TEXT    NOT NULL,
    UNIQUE(file_hash, owner_id)
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_uploaded_files_owner ON uploaded_files(owner_id);",
]

_COLUMNS = "id, file_name, file_hash, owner_id, content_type, size_bytes, created_at"

_INSERT_SQL = """\
INSERT INTO uploaded_files (file_name, file_hash, owner_id, content_type, size_bytes, created_at)
VALUES (?, ?, ?, ?, ?, ?);
"""

_SELECT_ONE_SQL = f"SELECT {_COLUMNS} FROM uploaded_files WHERE file_hash = ? AND owner_id = ?;"

_SELECT_BY_OWNER_SQL = (
    f"SELECT {_COLUMNS} FROM uploaded_files WHERE owner_id = ? ORDER BY created_at ASC, id ASC;"
)


class SQLiteFileRegistry(IFileRegistry):
    """SQLite-backed file metadata persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the uploaded_files table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("file_registry_initialized", path=str(self._db_path))

    async def insert(
        self,
        file_name: str,
        file_hash: str,
        owner_id: str,
        content_type: str,
        size_bytes: int,
    ) -> UploadedFile:
        created_at = datetime.now(tz=timezone.utc)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    _INSERT_SQL,
                    (
                        file_name,
                        file_hash,
                        owner_id,
                        content_type,
                        size_bytes,
                        created_at.isoformat(),
                    ),
                )
                await db.commit()
                row_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise ConflictError(
                message=f"File {file_hash[:12]} already registered for this owner",
                provider_name=self.get_provider_name(),
            ) from exc
        except sqlite3.Error as exc:
            raise WriteFailedError(
                message=f"Failed to save file metadata: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "file_registered",
            file_id=row_id,
            file_hash=file_hash,
            owner_id=owner_id,
        )
        return UploadedFile(
            id=row_id,
            file_name=file_name,
            file_hash=file_hash,
            owner_id=owner_id,
            content_type=content_type,
            size_bytes=size_bytes,
            created_at=created_at,
        )

    async def get(self, file_hash: str, owner_id: str) -> UploadedFile | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_ONE_SQL, (file_hash, owner_id))
            row = await cursor.fetchone()
        return self._row_to_file(row) if row is not None else None

    async def count_by_owner(self, owner_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM uploaded_files WHERE owner_id = ?",
                (owner_id,),
            )
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def list_by_owner(self, owner_id: str) -> list[UploadedFile]:
        """Return the owner's files, oldest first."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_BY_OWNER_SQL, (owner_id,))
            rows = await cursor.fetchall()
        return [self._row_to_file(r) for r in rows]

    async def delete(self, file_hash: str, owner_id: str) -> UploadedFile | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_ONE_SQL, (file_hash, owner_id))
            row = await cursor.fetchone()
            if row is None:
                return None
            await db.execute(
                "DELETE FROM uploaded_files WHERE id = ?",
                (row["id"],),
            )
            await db.commit()

        deleted = self._row_to_file(row)
        logger.info(
            "file_unregistered",
            file_id=deleted.id,
            file_hash=file_hash,
            owner_id=owner_id,
        )
        return deleted

    def get_provider_name(self) -> str:
        return "sqlite_registry"

    @staticmethod
    def _row_to_file(row: aiosqlite.Row) -> UploadedFile:
        r = dict(row)
        return UploadedFile(
            id=r["id"],
            file_name=r["file_name"],
            file_hash=r["file_hash"],
            owner_id=r["owner_id"],
            content_type=r["content_type"],
            size_bytes=r["size_bytes"],
            created_at=datetime.fromisoformat(r["created_at"]),
        )
