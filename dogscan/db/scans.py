"""Scan history in database."""

import json
from typing import Any, Dict, List

from psycopg import Connection

from ..models import ScanResult


class ScanManager:
    """Record finished scans in the scan_runs table."""

    def record_scan(self, conn: Connection, result: ScanResult) -> int:
        """
        Store a finished scan with its per-source breakdown.

        Returns:
            Scan run ID
        """
        summary = result.summary()
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO scan_runs (
                    started_at, finished_at, success,
                    total_found, total_processed, total_approved,
                    total_rejected, total_duplicates, total_flagged,
                    error_count, stats_json
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (
                    result.started_at,
                    result.finished_at,
                    result.success,
                    result.total_found,
                    result.total_processed,
                    result.total_approved,
                    result.total_rejected,
                    result.total_duplicates,
                    result.total_flagged,
                    len(result.errors),
                    json.dumps(summary["sources"]),
                ),
            )
            scan_id = cur.fetchone()["id"]
        conn.commit()
        return scan_id

    def recent_scans(self, conn: Connection, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recent scans, newest first."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, started_at, finished_at, success, total_found,
                       total_processed, total_approved, total_rejected,
                       total_duplicates, total_flagged, error_count
                FROM scan_runs
                ORDER BY started_at DESC
                LIMIT %s
                """,
                (limit,),
            )
            return cur.fetchall()
