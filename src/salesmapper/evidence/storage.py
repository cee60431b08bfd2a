"""Database persistence layer for the synonym dictionary and mapping history."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

from ..config import settings
from ..detection.models import CANONICAL_FIELDS, EvidenceStoreUnavailableError
from .base import LearnedMappingStore, MappingHistoryStore, SynonymStore
from .models import (
    FieldSynonym,
    LearnedMapping,
    MappingHistoryRecord,
    MappingStatistics,
    SynonymError,
    SynonymUsage,
    normalize_synonym,
)
from .seeds import GLOBAL_SYNONYMS

logger = logging.getLogger(__name__)


class EvidenceStorage(SynonymStore, LearnedMappingStore, MappingHistoryStore):
    """Manages database storage for field synonyms and column mapping history."""

    def __init__(
        self,
        db_path: Optional[Path] = None,
        seed_global_synonyms: Optional[bool] = None,
    ):
        self.db_path = db_path or settings.database_path
        self.seed_global_synonyms = (
            settings.seed_global_synonyms if seed_global_synonyms is None else seed_global_synonyms
        )
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self):
        """Initialize the database and create tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(str(self.db_path))

        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS field_synonyms (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                field_type TEXT NOT NULL,
                synonym TEXT NOT NULL,
                organization_id TEXT NULL,
                confidence_weight REAL DEFAULT 1.0,
                usage_count INTEGER NOT NULL DEFAULT 0,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                UNIQUE(field_type, synonym, organization_id)
            );

            CREATE TABLE IF NOT EXISTS column_mapping_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                organization_id TEXT NOT NULL,
                upload_id TEXT NULL,
                distributor_id TEXT NULL,
                filename_pattern TEXT NULL,
                detected_columns TEXT NOT NULL,
                final_mapping TEXT NOT NULL,
                confidence_score REAL NOT NULL DEFAULT 0.0,
                detection_method TEXT NOT NULL DEFAULT 'pattern',
                rows_processed INTEGER NOT NULL DEFAULT 0,
                success_rate REAL NOT NULL DEFAULT 0.0,
                created_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_field_synonyms_org
                ON field_synonyms(organization_id, is_active);
            CREATE INDEX IF NOT EXISTS idx_mapping_history_org
                ON column_mapping_history(organization_id, created_at);
            CREATE INDEX IF NOT EXISTS idx_mapping_history_distributor
                ON column_mapping_history(distributor_id);
            CREATE INDEX IF NOT EXISTS idx_mapping_history_filename
                ON column_mapping_history(filename_pattern);
            """
        )
        await self._connection.commit()

        if self.seed_global_synonyms:
            await self._seed_global_synonyms()

        logger.info("EvidenceStorage initialized")

    async def close(self):
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise EvidenceStoreUnavailableError("EvidenceStorage is not initialized")
        return self._connection

    async def _seed_global_synonyms(self):
        cursor = await self._connection.execute(
            "SELECT COUNT(*) FROM field_synonyms WHERE organization_id IS NULL"
        )
        row = await cursor.fetchone()
        if row[0] > 0:
            return

        now = datetime.now(timezone.utc).isoformat()
        await self._connection.executemany(
            """
            INSERT INTO field_synonyms
            (field_type, synonym, organization_id, confidence_weight, created_at)
            VALUES (?, ?, NULL, ?, ?)
            """,
            [(field_type, synonym, weight, now) for field_type, synonym, weight in GLOBAL_SYNONYMS],
        )
        await self._connection.commit()
        logger.info(f"Seeded {len(GLOBAL_SYNONYMS)} global synonyms")

    # Synonym operations

    async def add_synonym(
        self,
        field_type: str,
        synonym: str,
        organization_id: Optional[str] = None,
        confidence_weight: Optional[float] = 1.0,
    ) -> FieldSynonym:
        """
        Store a synonym, globally when organization_id is None.

        The synonym is trimmed and lowercased before it is stored.

        Raises:
            SynonymError: If the synonym is empty, the field type is unknown
                or the synonym already exists in the same scope
        """
        connection = self._require_connection()
        normalized = normalize_synonym(synonym)
        if not normalized:
            raise SynonymError("Synonym cannot be empty")
        if field_type not in CANONICAL_FIELDS:
            raise SynonymError(f"Invalid field type: {field_type}")

        async with connection.execute(
            """
            SELECT id FROM field_synonyms
            WHERE field_type = ? AND synonym = ? AND organization_id IS ?
            """,
            (field_type, normalized, organization_id),
        ) as cursor:
            if await cursor.fetchone():
                raise SynonymError(f"Synonym '{normalized}' already exists for {field_type}")

        await connection.execute(
            """
            INSERT INTO field_synonyms
            (field_type, synonym, organization_id, confidence_weight, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (field_type, normalized, organization_id, confidence_weight, datetime.now(timezone.utc).isoformat()),
        )
        await connection.commit()
        logger.info(
            f"Stored synonym '{normalized}' -> {field_type} "
            f"({'global' if organization_id is None else organization_id})"
        )
        return FieldSynonym(
            field_type=field_type, synonym=normalized, confidence_weight=confidence_weight
        )

    async def set_synonym_active(
        self, field_type: str, synonym: str, organization_id: Optional[str], active: bool
    ) -> bool:
        """Enable or disable a synonym without deleting it."""
        connection = self._require_connection()
        cursor = await connection.execute(
            """
            UPDATE field_synonyms SET is_active = ?
            WHERE field_type = ? AND synonym = ? AND organization_id IS ?
            """,
            (1 if active else 0, field_type, normalize_synonym(synonym), organization_id),
        )
        await connection.commit()
        return cursor.rowcount > 0

    async def get_synonyms(self, organization_id: str) -> list[FieldSynonym]:
        """Get active global synonyms followed by the organization's synonyms."""
        connection = self._require_connection()
        query = """
            SELECT field_type, synonym, confidence_weight
            FROM field_synonyms
            WHERE {scope} AND is_active = 1
            ORDER BY id
        """
        async with connection.execute(query.format(scope="organization_id IS NULL")) as cursor:
            global_rows = await cursor.fetchall()
        async with connection.execute(
            query.format(scope="organization_id = ?"), (organization_id,)
        ) as cursor:
            org_rows = await cursor.fetchall()

        return [self._row_to_synonym(row) for row in [*global_rows, *org_rows]]

    async def increment_synonym_usage(self, organization_id: str, synonym: str) -> int:
        """Increment usage_count on the organization's synonyms matching ``synonym``."""
        connection = self._require_connection()
        cursor = await connection.execute(
            """
            UPDATE field_synonyms SET usage_count = usage_count + 1
            WHERE LOWER(TRIM(synonym)) = ? AND organization_id = ?
            """,
            (normalize_synonym(synonym), organization_id),
        )
        await connection.commit()
        return cursor.rowcount

    def _row_to_synonym(self, row) -> FieldSynonym:
        """Convert a database row to a FieldSynonym object."""
        return FieldSynonym(field_type=row[0], synonym=row[1], confidence_weight=row[2])

    # Mapping history operations

    async def save_mapping_history(self, record: MappingHistoryRecord) -> MappingHistoryRecord:
        """Persist a mapping outcome."""
        connection = self._require_connection()
        cursor = await connection.execute(
            """
            INSERT INTO column_mapping_history
            (organization_id, upload_id, distributor_id, filename_pattern,
             detected_columns, final_mapping, confidence_score, detection_method,
             rows_processed, success_rate, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.organization_id,
                record.upload_id,
                record.distributor_id,
                record.filename_pattern,
                json.dumps(record.detected_columns),
                json.dumps(record.final_mapping),
                record.confidence_score,
                record.detection_method,
                record.rows_processed,
                record.success_rate,
                record.created_at.isoformat(),
            ),
        )
        await connection.commit()
        record.id = cursor.lastrowid

        logger.info(
            f"Stored mapping history {record.id} for {record.organization_id} "
            f"({record.detection_method}, confidence {record.confidence_score:.2f})"
        )
        return record

    async def get_learned_mappings(
        self, organization_id: str, distributor_id: Optional[str] = None
    ) -> list[LearnedMapping]:
        """Get confident past mappings for an organization, newest first."""
        connection = self._require_connection()
        query = """
            SELECT final_mapping, confidence_score, detection_method
            FROM column_mapping_history
            WHERE organization_id = ? AND confidence_score >= ?
        """
        params: list = [organization_id, settings.learned_min_confidence]

        if distributor_id:
            query += " AND distributor_id = ?"
            params.append(distributor_id)

        query += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params.append(settings.learned_limit)

        async with connection.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [
                LearnedMapping(
                    final_mapping=json.loads(row[0]) if row[0] else {},
                    confidence_score=row[1] or 0.0,
                    detection_method=row[2] or "unknown",
                )
                for row in rows
            ]

    async def get_mapping_history(
        self, organization_id: str, limit: int = 50
    ) -> list[MappingHistoryRecord]:
        """Get all stored mapping outcomes for an organization, newest first."""
        connection = self._require_connection()
        async with connection.execute(
            """
            SELECT id, organization_id, upload_id, distributor_id, filename_pattern,
                   detected_columns, final_mapping, confidence_score, detection_method,
                   rows_processed, success_rate, created_at
            FROM column_mapping_history
            WHERE organization_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (organization_id, limit),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_history(row) for row in rows]

    async def get_mapping_statistics(self, organization_id: str) -> MappingStatistics:
        """Summarize an organization's mapping history and its 10 most used synonyms."""
        connection = self._require_connection()
        async with connection.execute(
            """
            SELECT detection_method, COUNT(*), SUM(confidence_score), SUM(success_rate)
            FROM column_mapping_history
            WHERE organization_id = ?
            GROUP BY detection_method
            ORDER BY MIN(id)
            """,
            (organization_id,),
        ) as cursor:
            method_rows = await cursor.fetchall()

        async with connection.execute(
            """
            SELECT synonym, field_type, usage_count
            FROM field_synonyms
            WHERE organization_id = ? AND is_active = 1
            ORDER BY usage_count DESC, id
            LIMIT 10
            """,
            (organization_id,),
        ) as cursor:
            synonym_rows = await cursor.fetchall()

        total = sum(row[1] for row in method_rows)
        return MappingStatistics(
            total_mappings=total,
            average_confidence=sum(row[2] or 0.0 for row in method_rows) / total if total else 0.0,
            average_success_rate=sum(row[3] or 0.0 for row in method_rows) / total if total else 0.0,
            detection_methods={row[0]: row[1] for row in method_rows},
            top_synonyms=[
                SynonymUsage(synonym=row[0], field_type=row[1], usage_count=row[2])
                for row in synonym_rows
            ],
        )

    def _row_to_history(self, row) -> MappingHistoryRecord:
        """Convert a database row to a MappingHistoryRecord object."""
        return MappingHistoryRecord(
            id=row[0],
            organization_id=row[1],
            upload_id=row[2],
            distributor_id=row[3],
            filename_pattern=row[4],
            detected_columns=json.loads(row[5]),
            final_mapping=json.loads(row[6]),
            confidence_score=row[7],
            detection_method=row[8],
            rows_processed=row[9],
            success_rate=row[10],
            created_at=datetime.fromisoformat(row[11]),
        )
