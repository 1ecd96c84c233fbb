"""PostgreSQL schema for queue entries, file records and aggregate counters."""

from typing import Any

import psycopg

SCHEMA = """
CREATE SEQUENCE IF NOT EXISTS queue_position_seq START 1;

CREATE TABLE IF NOT EXISTS queue_entries (
    queue_position TEXT PRIMARY KEY,
    files_uploaded INTEGER NOT NULL DEFAULT 0,
    files_treated INTEGER NOT NULL DEFAULT 0,
    files_not_treated INTEGER NOT NULL DEFAULT 0,
    extraction_started_at TIMESTAMPTZ,
    extraction_ended_at TIMESTAMPTZ,
    total_processing_time DOUBLE PRECISION NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CHECK (files_treated + files_not_treated <= files_uploaded)
);

CREATE TABLE IF NOT EXISTS file_records (
    id BIGSERIAL PRIMARY KEY,
    original_name TEXT NOT NULL,
    queue_position TEXT NOT NULL REFERENCES queue_entries (queue_position),
    synthesized_name TEXT,
    input_type TEXT NOT NULL,
    output_type TEXT NOT NULL,
    detected_language TEXT,
    started_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    ended_at TIMESTAMPTZ,
    duration_seconds DOUBLE PRECISION,
    state TEXT NOT NULL DEFAULT 'pending'
        CHECK (state IN ('pending', 'processing', 'success', 'failed'))
);

CREATE INDEX IF NOT EXISTS idx_file_records_queue_state
    ON file_records (queue_position, state);

CREATE TABLE IF NOT EXISTS aggregate_counters (
    id SMALLINT PRIMARY KEY DEFAULT 1 CHECK (id = 1),
    total_users BIGINT NOT NULL DEFAULT 0,
    total_files BIGINT NOT NULL DEFAULT 0
);

INSERT INTO aggregate_counters (id) VALUES (1) ON CONFLICT (id) DO NOTHING;
"""


def apply_schema(conn: psycopg.Connection[Any]) -> None:
    """Create tables, sequence and the aggregate row if they do not exist."""
    conn.execute(SCHEMA)
    conn.commit()
