# SQL schema for LineCoach database

SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Scripts (immutable after creation apart from timestamps)
CREATE TABLE IF NOT EXISTS scripts (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    raw_markdown TEXT NOT NULL,
    my_character TEXT NOT NULL,
    chunk_size INTEGER NOT NULL DEFAULT 5 CHECK(chunk_size > 0),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Scenes
CREATE TABLE IF NOT EXISTS scenes (
    id TEXT PRIMARY KEY,
    script_id TEXT NOT NULL,
    name TEXT NOT NULL,
    scene_order INTEGER NOT NULL CHECK(scene_order >= 0),
    FOREIGN KEY (script_id) REFERENCES scripts (id) ON DELETE CASCADE
);

-- Lines (with SM-2 and chunk mastery fields)
CREATE TABLE IF NOT EXISTS lines (
    id TEXT PRIMARY KEY,
    script_id TEXT NOT NULL,
    scene_id TEXT NOT NULL,
    cue TEXT NOT NULL,
    cue_character TEXT NOT NULL DEFAULT '',
    response TEXT NOT NULL,
    response_character TEXT NOT NULL,
    line_order INTEGER NOT NULL CHECK(line_order >= 0),
    interval INTEGER NOT NULL DEFAULT 0,
    repetition INTEGER NOT NULL DEFAULT 0,
    easiness_factor REAL NOT NULL DEFAULT 2.5 CHECK(easiness_factor >= 1.3),
    due_date TEXT NOT NULL,
    consecutive_correct INTEGER NOT NULL DEFAULT 0,
    UNIQUE (script_id, line_order),
    FOREIGN KEY (script_id) REFERENCES scripts (id) ON DELETE CASCADE,
    FOREIGN KEY (scene_id) REFERENCES scenes (id) ON DELETE CASCADE
);

-- Grading log
CREATE TABLE IF NOT EXISTS reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    line_id TEXT NOT NULL,
    script_id TEXT NOT NULL,
    correct INTEGER NOT NULL CHECK(correct IN (0, 1)),
    chunk_index INTEGER,
    ts TEXT NOT NULL DEFAULT (datetime('now')),
    FOREIGN KEY (line_id) REFERENCES lines (id) ON DELETE CASCADE,
    FOREIGN KEY (script_id) REFERENCES scripts (id) ON DELETE CASCADE
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_scripts_created ON scripts (created_at);
CREATE INDEX IF NOT EXISTS idx_scenes_script ON scenes (script_id, scene_order);
CREATE INDEX IF NOT EXISTS idx_lines_script_order ON lines (script_id, line_order);
CREATE INDEX IF NOT EXISTS idx_lines_scene ON lines (scene_id);
CREATE INDEX IF NOT EXISTS idx_lines_due ON lines (due_date);
CREATE INDEX IF NOT EXISTS idx_reviews_script ON reviews (script_id, id);
CREATE INDEX IF NOT EXISTS idx_reviews_line ON reviews (line_id);
"""
