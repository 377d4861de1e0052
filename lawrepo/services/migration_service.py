# lawrepo/services/migration_service.py
"""
Ordered, idempotent schema migrations for the videos table and its satellites.

Every statement is written so that running a migration twice is harmless:
ADD COLUMN is checked against the live schema first, tables and indexes use
IF NOT EXISTS. A migration runs in a single transaction.
"""
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import func, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lawrepo.db.init_db import init_db
from lawrepo.models.user import User
from lawrepo.models.video import Video

logger = logging.getLogger(__name__)

ADD_COLUMN_RE = re.compile(
    r"ALTER\s+TABLE\s+(\w+)\s+ADD\s+COLUMN\s+(?:IF\s+NOT\s+EXISTS\s+)?(\w+)",
    re.IGNORECASE,
)
CREATE_TABLE_RE = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(\w+)",
    re.IGNORECASE,
)
CREATE_INDEX_RE = re.compile(
    r"CREATE\s+(?:UNIQUE\s+)?INDEX\s+(?:IF\s+NOT\s+EXISTS\s+)?(\w+)\s+ON\s+(\w+)",
    re.IGNORECASE,
)

MUX_COLUMNS = [
    "mux_asset_id",
    "mux_playback_id",
    "mux_upload_id",
    "mux_status",
    "mux_thumbnail_url",
    "mux_streaming_url",
    "mux_mp4_url",
    "mux_duration_seconds",
    "mux_aspect_ratio",
    "mux_created_at",
    "mux_ready_at",
]


class MigrationError(Exception):
    pass


@dataclass
class Migration:
    name: str
    description: str
    statements: List[str] = field(default_factory=list)


def _add_columns(table: str, columns: List[tuple]) -> List[str]:
    return [
        f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {name} {definition}"
        for name, definition in columns
    ]


MIGRATIONS: List[Migration] = [
    Migration(
        name="001_add_updated_at_to_videos",
        description="Add updated_at to videos plus lookup indexes",
        statements=_add_columns(
            "videos",
            [("updated_at", "TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP")],
        )
        + [
            "CREATE INDEX IF NOT EXISTS idx_videos_is_public ON videos(is_public)",
            "CREATE INDEX IF NOT EXISTS idx_videos_is_processed ON videos(is_processed)",
            "CREATE INDEX IF NOT EXISTS idx_videos_updated_at ON videos(updated_at)",
        ],
    ),
    Migration(
        name="002_add_mux_integration_fields",
        description="Mux asset columns, webhook event log and job tables",
        statements=_add_columns(
            "videos",
            [
                ("mux_asset_id", "VARCHAR(255)"),
                ("mux_playback_id", "VARCHAR(255)"),
                ("mux_upload_id", "VARCHAR(255)"),
                ("mux_status", "VARCHAR(50) DEFAULT 'pending'"),
                ("mux_thumbnail_url", "TEXT"),
                ("mux_streaming_url", "TEXT"),
                ("mux_mp4_url", "TEXT"),
                ("mux_duration_seconds", "INTEGER"),
                ("mux_aspect_ratio", "VARCHAR(20)"),
                ("mux_created_at", "TIMESTAMP WITH TIME ZONE"),
                ("mux_ready_at", "TIMESTAMP WITH TIME ZONE"),
                ("captions_webvtt_url", "TEXT"),
                ("transcript_text", "TEXT"),
                ("transcript_confidence", "DECIMAL(3,2)"),
            ],
        )
        + [
            "CREATE INDEX IF NOT EXISTS idx_videos_mux_asset_id ON videos(mux_asset_id)",
            "CREATE INDEX IF NOT EXISTS idx_videos_mux_status ON videos(mux_status)",
            """CREATE TABLE IF NOT EXISTS mux_webhook_events (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                event_type VARCHAR(100) NOT NULL,
                mux_asset_id VARCHAR(255),
                mux_upload_id VARCHAR(255),
                video_id UUID,
                event_data JSONB,
                processed BOOLEAN DEFAULT FALSE,
                created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
                processed_at TIMESTAMP WITH TIME ZONE
            )""",
            "CREATE INDEX IF NOT EXISTS idx_mux_webhook_events_processed "
            "ON mux_webhook_events(processed, created_at)",
            "CREATE INDEX IF NOT EXISTS idx_mux_webhook_events_asset_id "
            "ON mux_webhook_events(mux_asset_id)",
            """CREATE TABLE IF NOT EXISTS audio_enhancement_jobs (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                video_id UUID REFERENCES videos(id) ON DELETE CASCADE,
                job_id VARCHAR(255) UNIQUE NOT NULL,
                status VARCHAR(50) DEFAULT 'pending',
                error_message TEXT,
                created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
                completed_at TIMESTAMP WITH TIME ZONE
            )""",
            """CREATE TABLE IF NOT EXISTS transcription_jobs (
                id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                video_id UUID REFERENCES videos(id) ON DELETE CASCADE,
                job_id VARCHAR(255) UNIQUE NOT NULL,
                status VARCHAR(50) DEFAULT 'pending',
                language VARCHAR(10) DEFAULT 'en-US',
                error_message TEXT,
                created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
                completed_at TIMESTAMP WITH TIME ZONE
            )""",
        ],
    ),
    Migration(
        name="003_add_unique_mux_constraint",
        description="One video row per Mux asset",
        statements=[
            "CREATE UNIQUE INDEX IF NOT EXISTS unique_mux_asset_id "
            "ON videos(mux_asset_id) WHERE mux_asset_id IS NOT NULL",
        ],
    ),
    Migration(
        name="006_add_missing_fields_clean",
        description="Columns the upload and thumbnail flows rely on",
        statements=_add_columns(
            "videos",
            [
                ("thumbnail_timestamp", "INTEGER DEFAULT 0"),
                ("thumbnail_method", "VARCHAR(30)"),
                ("s3_key", "VARCHAR(255)"),
                ("s3_bucket", "VARCHAR(255)"),
                ("status", "VARCHAR(50) DEFAULT 'pending'"),
                ("visibility", "VARCHAR(20) DEFAULT 'private'"),
                ("category", "VARCHAR(100)"),
                ("tags", "TEXT"),
                ("stream_url", "TEXT"),
                ("mediaconvert_job_id", "VARCHAR(255)"),
                ("course_id", "UUID"),
                ("webhook_received_at", "TIMESTAMP WITH TIME ZONE"),
            ],
        ),
    ),
    Migration(
        name="008_add_speaker_fields",
        description="Speaker identification columns",
        statements=_add_columns(
            "videos",
            [
                ("speaker_identifications", "JSONB"),
                ("speaker_count", "INTEGER DEFAULT 0"),
            ],
        )
        + ["CREATE INDEX IF NOT EXISTS idx_videos_speaker_count ON videos(speaker_count)"],
    ),
]

MIGRATIONS_BY_NAME: Dict[str, Migration] = {m.name: m for m in MIGRATIONS}


def get_migration(name: str) -> Optional[Migration]:
    return MIGRATIONS_BY_NAME.get(name)


def list_migrations() -> List[Dict[str, Any]]:
    return [
        {"name": m.name, "description": m.description, "statements": len(m.statements)}
        for m in MIGRATIONS
    ]


def classify(statement: str) -> tuple[str, Any]:
    match = ADD_COLUMN_RE.search(statement)
    if match:
        return "add_column", (match.group(1), match.group(2))
    match = CREATE_TABLE_RE.search(statement)
    if match:
        return "create_table", match.group(1)
    match = CREATE_INDEX_RE.search(statement)
    if match:
        return "create_index", (match.group(1), match.group(2))
    return "other", None


def apply_migration(db: Session, migration: Migration, dry_run: bool = False) -> Dict[str, Any]:
    """
    Run every statement of `migration` inside the session transaction.
    Raises MigrationError after rolling back when a statement fails.
    """
    started = time.monotonic()
    summary: Dict[str, Any] = {
        "migration": migration.name,
        "tablesCreated": [],
        "columnsAdded": [],
        "indexesCreated": [],
        "skipped": [],
    }

    if dry_run:
        for statement in migration.statements:
            kind, target = classify(statement)
            summary.setdefault("planned", []).append({"type": kind, "target": target})
        summary.update(success=True, dryRun=True, executionTime=0)
        return summary

    logger.info(f"Applying migration {migration.name} ({len(migration.statements)} statements)")
    current = None
    try:
        for statement in migration.statements:
            current = statement
            kind, target = classify(statement)
            inspector = inspect(db.connection())

            if kind == "add_column":
                table, column = target
                existing = {c["name"] for c in inspector.get_columns(table)}
                if column in existing:
                    summary["skipped"].append(f"{table}.{column}")
                    continue
                db.execute(text(statement))
                summary["columnsAdded"].append(f"{table}.{column}")

            elif kind == "create_table":
                if inspector.has_table(target):
                    summary["skipped"].append(target)
                    continue
                db.execute(text(statement))
                summary["tablesCreated"].append(target)

            elif kind == "create_index":
                index_name, table = target
                existing = {ix["name"] for ix in inspector.get_indexes(table)}
                if index_name in existing:
                    summary["skipped"].append(index_name)
                    continue
                db.execute(text(statement))
                summary["indexesCreated"].append(index_name)

            else:
                db.execute(text(statement))

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Migration {migration.name} failed on statement: {current}: {e}")
        raise MigrationError(f"Migration {migration.name} failed: {e}") from e

    summary["success"] = True
    summary["executionTime"] = int((time.monotonic() - started) * 1000)
    logger.info(
        f"Migration {migration.name} applied: {len(summary['columnsAdded'])} columns, "
        f"{len(summary['tablesCreated'])} tables, {len(summary['indexesCreated'])} indexes, "
        f"{len(summary['skipped'])} skipped"
    )
    return summary


def migration_status(db: Session) -> Dict[str, Any]:
    inspector = inspect(db.connection())
    video_columns = (
        {c["name"] for c in inspector.get_columns("videos")} if inspector.has_table("videos") else set()
    )
    present = [c for c in MUX_COLUMNS if c in video_columns]
    return {
        "muxColumns": present,
        "muxColumnsMissing": [c for c in MUX_COLUMNS if c not in video_columns],
        "muxIntegrationComplete": len(present) == len(MUX_COLUMNS),
        "tables": {
            "mux_webhook_events": inspector.has_table("mux_webhook_events"),
            "audio_enhancement_jobs": inspector.has_table("audio_enhancement_jobs"),
            "transcription_jobs": inspector.has_table("transcription_jobs"),
        },
    }


def health_check(db: Session) -> Dict[str, Any]:
    started = time.monotonic()
    try:
        server_time = db.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()
        video_count = db.query(func.count(Video.id)).scalar()
        user_count = db.query(func.count(User.id)).scalar()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "connection": "failed",
            "error": str(e),
        }
    return {
        "status": "healthy",
        "connection": "ok",
        "serverTime": str(server_time),
        "responseTime": int((time.monotonic() - started) * 1000),
        "counts": {"videos": video_count, "users": user_count},
    }


def init_database(db: Session) -> Dict[str, Any]:
    try:
        seeded = init_db(db)
    except SQLAlchemyError as e:
        db.rollback()
        raise MigrationError(f"Database initialisation failed: {e}") from e
    result = {"success": True}
    result.update(seeded)
    return result
