"""Database initialization and schema management."""

import logging
from typing import Any, Dict

import psycopg
from psycopg.errors import DatabaseError

from .connection import get_connection

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
-- Accepted and flagged content
CREATE TABLE IF NOT EXISTS content_records (
    id SERIAL PRIMARY KEY,
    content_hash TEXT NOT NULL UNIQUE,
    canonical_url TEXT NOT NULL,
    source_id TEXT NOT NULL,
    text TEXT NOT NULL DEFAULT '',
    media_url TEXT,
    content_type TEXT NOT NULL DEFAULT 'text'
        CHECK (content_type IN ('text', 'image', 'gif', 'video')),
    decision_action TEXT NOT NULL CHECK (decision_action IN ('approved', 'flagged')),
    status TEXT NOT NULL CHECK (status IN ('approved', 'pending_review')),
    confidence REAL NOT NULL CHECK (confidence >= 0 AND confidence <= 1),
    flagged_patterns JSONB NOT NULL DEFAULT '[]',
    discovered_at TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Filter rules
CREATE TABLE IF NOT EXISTS filter_rules (
    id SERIAL PRIMARY KEY,
    pattern_type TEXT NOT NULL
        CHECK (pattern_type IN ('required', 'spam', 'inappropriate', 'unrelated')),
    rule_id TEXT,
    pattern TEXT NOT NULL,
    is_regex BOOLEAN NOT NULL DEFAULT FALSE,
    description TEXT,
    is_enabled BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(pattern_type, pattern)
);

-- Scan history
CREATE TABLE IF NOT EXISTS scan_runs (
    id SERIAL PRIMARY KEY,
    started_at TIMESTAMPTZ NOT NULL,
    finished_at TIMESTAMPTZ,
    success BOOLEAN NOT NULL,
    total_found INTEGER NOT NULL DEFAULT 0,
    total_processed INTEGER NOT NULL DEFAULT 0,
    total_approved INTEGER NOT NULL DEFAULT 0,
    total_rejected INTEGER NOT NULL DEFAULT 0,
    total_duplicates INTEGER NOT NULL DEFAULT 0,
    total_flagged INTEGER NOT NULL DEFAULT 0,
    error_count INTEGER NOT NULL DEFAULT 0,
    stats_json JSONB,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_content_records_canonical_url ON content_records(canonical_url);
CREATE INDEX IF NOT EXISTS idx_content_records_status ON content_records(status);
CREATE INDEX IF NOT EXISTS idx_content_records_source_id ON content_records(source_id);
CREATE INDEX IF NOT EXISTS idx_filter_rules_type ON filter_rules(pattern_type);
CREATE INDEX IF NOT EXISTS idx_scan_runs_started_at ON scan_runs(started_at);

-- Update trigger function
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ language 'plpgsql';

-- Create update triggers
DROP TRIGGER IF EXISTS update_content_records_updated_at ON content_records;
CREATE TRIGGER update_content_records_updated_at BEFORE UPDATE ON content_records
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

DROP TRIGGER IF EXISTS update_filter_rules_updated_at ON filter_rules;
CREATE TRIGGER update_filter_rules_updated_at BEFORE UPDATE ON filter_rules
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except psycopg.Error as e:
        logger.error("Database connection failed: %s", e)
        return False


def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
                conn.commit()
                logger.info("Database schema initialized successfully")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise
