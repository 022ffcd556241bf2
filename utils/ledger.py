from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from models.line import Line
from models.script import Scene, Script
from utils.chunks import MASTERY_THRESHOLD
from utils.sm2 import progress_fields

logger = logging.getLogger(__name__)


def _parse_ts(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _line_from_row(row: sqlite3.Row) -> Line:
    return Line(
        id=row["id"],
        script_id=row["script_id"],
        scene_id=row["scene_id"],
        cue=row["cue"],
        cue_character=row["cue_character"],
        response=row["response"],
        response_character=row["response_character"],
        order=int(row["line_order"]),
        interval=int(row["interval"]),
        repetition=int(row["repetition"]),
        easiness_factor=float(row["easiness_factor"]),
        due_date=_parse_ts(row["due_date"]),
        consecutive_correct=int(row["consecutive_correct"]),
    )


def _script_from_row(row: sqlite3.Row) -> Script:
    return Script(
        id=row["id"],
        title=row["title"],
        raw_markdown=row["raw_markdown"],
        my_character=row["my_character"],
        chunk_size=int(row["chunk_size"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def insert_script_records(
    conn: sqlite3.Connection,
    script: Script,
    scenes: Sequence[Scene],
    lines: Sequence[Line],
) -> None:
    """Insert a parsed script with its scenes and lines as one transaction."""
    cursor = conn.cursor()
    try:
        cursor.execute(
            """
            INSERT INTO scripts (id, title, raw_markdown, my_character, chunk_size, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                script.id,
                script.title,
                script.raw_markdown,
                script.my_character,
                script.chunk_size,
                script.created_at.isoformat(),
                script.updated_at.isoformat(),
            ),
        )
        cursor.executemany(
            "INSERT INTO scenes (id, script_id, name, scene_order) VALUES (?, ?, ?, ?)",
            [(scene.id, scene.script_id, scene.name, scene.order) for scene in scenes],
        )
        cursor.executemany(
            """
            INSERT INTO lines (
                id, script_id, scene_id, cue, cue_character, response, response_character,
                line_order, interval, repetition, easiness_factor, due_date, consecutive_correct
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    line.id,
                    line.script_id,
                    line.scene_id,
                    line.cue,
                    line.cue_character,
                    line.response,
                    line.response_character,
                    line.order,
                    line.interval,
                    line.repetition,
                    line.easiness_factor,
                    line.due_date.isoformat(),
                    line.consecutive_correct,
                )
                for line in lines
            ],
        )
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        logger.exception("Failed to store script %r", script.title)
        raise
    logger.info(
        "Stored script %s %r: %d scenes, %d lines, chunk size %d",
        script.id,
        script.title,
        len(scenes),
        len(lines),
        script.chunk_size,
    )


def get_script(conn: sqlite3.Connection, script_id: str) -> Optional[Script]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM scripts WHERE id = ?", (script_id,))
    row = cursor.fetchone()
    return _script_from_row(row) if row else None


def list_scripts(conn: sqlite3.Connection) -> List[Dict]:
    """Scripts newest first, with line and mastered-line counts."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT
            s.id,
            s.title,
            s.my_character,
            s.chunk_size,
            s.created_at,
            COUNT(l.id) AS line_count,
            COALESCE(SUM(CASE WHEN l.consecutive_correct >= ? THEN 1 ELSE 0 END), 0) AS mastered_count
        FROM scripts s
        LEFT JOIN lines l ON l.script_id = s.id
        GROUP BY s.id
        ORDER BY s.created_at DESC
        """,
        (MASTERY_THRESHOLD,),
    )
    return [dict(row) for row in cursor.fetchall()]


def get_scenes(conn: sqlite3.Connection, script_id: str) -> List[Scene]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT id, script_id, name, scene_order FROM scenes WHERE script_id = ? ORDER BY scene_order",
        (script_id,),
    )
    return [
        Scene(id=row["id"], script_id=row["script_id"], name=row["name"], order=int(row["scene_order"]))
        for row in cursor.fetchall()
    ]


def load_lines(conn: sqlite3.Connection, script_id: str) -> List[Line]:
    """Read the full current line set of a script, in order."""
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM lines WHERE script_id = ? ORDER BY line_order", (script_id,))
    return [_line_from_row(row) for row in cursor.fetchall()]


def get_line(conn: sqlite3.Connection, line_id: str) -> Optional[Line]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM lines WHERE id = ?", (line_id,))
    row = cursor.fetchone()
    return _line_from_row(row) if row else None


def save_grade(
    conn: sqlite3.Connection,
    line: Line,
    correct: bool,
    chunk_index: Optional[int] = None,
) -> None:
    """Write a graded line's progress fields and log the grade atomically.

    On failure the transaction is rolled back so the stored line keeps its
    previous state, and the error is re-raised for the caller to report.
    """
    fields = progress_fields(line)
    cursor = conn.cursor()
    try:
        cursor.execute(
            """
            UPDATE lines
            SET interval = ?, repetition = ?, easiness_factor = ?, due_date = ?, consecutive_correct = ?
            WHERE id = ?
            """,
            (
                fields["interval"],
                fields["repetition"],
                fields["easiness_factor"],
                fields["due_date"].isoformat(),
                fields["consecutive_correct"],
                line.id,
            ),
        )
        if cursor.rowcount != 1:
            raise sqlite3.IntegrityError(f"Line {line.id} not found")
        cursor.execute(
            "INSERT INTO reviews (line_id, script_id, correct, chunk_index, ts) VALUES (?, ?, ?, ?, ?)",
            (
                line.id,
                line.script_id,
                1 if correct else 0,
                chunk_index,
                datetime.now(timezone.utc).isoformat(),
            ),
        )
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        logger.exception("Failed to save grade for line %s", line.id)
        raise


def last_graded_order(conn: sqlite3.Connection, script_id: str, line_ids: Sequence[str]) -> Optional[int]:
    """Order of the most recently graded line among line_ids, or None."""
    if not line_ids:
        return None
    placeholders = ",".join("?" for _ in line_ids)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT l.line_order
        FROM reviews r
        JOIN lines l ON l.id = r.line_id
        WHERE r.script_id = ? AND r.line_id IN ({placeholders})
        ORDER BY r.id DESC
        LIMIT 1
        """,
        [script_id, *line_ids],
    )
    row = cursor.fetchone()
    return int(row[0]) if row else None


def review_counts(conn: sqlite3.Connection, script_id: str) -> Dict[str, int]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT correct, COUNT(*) FROM reviews WHERE script_id = ? GROUP BY correct",
        (script_id,),
    )
    counts = {int(row[0]): int(row[1]) for row in cursor.fetchall()}
    return {"correct": counts.get(1, 0), "incorrect": counts.get(0, 0)}


def reset_progress(conn: sqlite3.Connection, script_id: str, now: Optional[datetime] = None) -> int:
    """Restore default recurrence state for every line of a script and clear its log."""
    due = (now or datetime.now(timezone.utc)).isoformat()
    cursor = conn.cursor()
    try:
        cursor.execute(
            """
            UPDATE lines
            SET interval = 0, repetition = 0, easiness_factor = 2.5, due_date = ?, consecutive_correct = 0
            WHERE script_id = ?
            """,
            (due, script_id),
        )
        reset = cursor.rowcount
        cursor.execute("DELETE FROM reviews WHERE script_id = ?", (script_id,))
        cursor.execute(
            "UPDATE scripts SET updated_at = ? WHERE id = ?",
            (datetime.now(timezone.utc).isoformat(), script_id),
        )
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        logger.exception("Failed to reset progress for script %s", script_id)
        raise
    logger.info("Reset progress for %d lines of script %s", reset, script_id)
    return reset


def delete_script(conn: sqlite3.Connection, script_id: str) -> bool:
    cursor = conn.cursor()
    try:
        cursor.execute("DELETE FROM reviews WHERE script_id = ?", (script_id,))
        cursor.execute("DELETE FROM lines WHERE script_id = ?", (script_id,))
        cursor.execute("DELETE FROM scenes WHERE script_id = ?", (script_id,))
        cursor.execute("DELETE FROM scripts WHERE id = ?", (script_id,))
        deleted = cursor.rowcount > 0
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        logger.exception("Failed to delete script %s", script_id)
        raise
    if deleted:
        logger.info("Deleted script %s", script_id)
    return deleted
