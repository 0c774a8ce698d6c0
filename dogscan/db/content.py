"""Postgres-backed content store."""

import logging

import psycopg
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from ..errors import StoreError
from ..models import ContentRecord
from .store import ContentStore, UpsertResult

logger = logging.getLogger(__name__)


class PostgresContentStore(ContentStore):
    """
    Content records in the content_records table.

    Uniqueness of content_hash is enforced by the table, so concurrent
    scans racing on the same hash collapse to one row.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self.pool = pool

    def upsert_if_absent(self, content_hash: str, record: ContentRecord) -> UpsertResult:
        try:
            with self.pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO content_records (
                            content_hash, canonical_url, source_id, text, media_url,
                            content_type, decision_action, status, confidence,
                            flagged_patterns, discovered_at
                        ) VALUES (
                            %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
                        )
                        ON CONFLICT (content_hash) DO NOTHING
                        RETURNING id
                        """,
                        (
                            content_hash,
                            record.canonical_url,
                            record.source_id,
                            record.text,
                            record.media_url,
                            record.content_type.value,
                            record.decision_action.value,
                            record.status.value,
                            record.confidence,
                            Jsonb(record.flagged_patterns),
                            record.discovered_at,
                        ),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.Error as e:
            raise StoreError(f"Failed to store {content_hash[:12]}: {e}") from e

        if row is None:
            return UpsertResult(inserted=False)
        return UpsertResult(inserted=True, record_id=row["id"])

    def _exists(self, column: str, value: str) -> bool:
        try:
            with self.pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"SELECT 1 FROM content_records WHERE {column} = %s LIMIT 1",
                        (value,),
                    )
                    return cur.fetchone() is not None
        except psycopg.Error as e:
            raise StoreError(f"Failed to look up {column}: {e}") from e

    def exists_by_hash(self, content_hash: str) -> bool:
        return self._exists("content_hash", content_hash)

    def exists_by_url(self, canonical_url: str) -> bool:
        return self._exists("canonical_url", canonical_url)
