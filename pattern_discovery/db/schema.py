"""Database schema DDL: table definitions for the pattern catalog."""

SCHEMA_DDL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys = ON;

-- ==========================================================================
-- Domains (top-level knowledge areas)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS domains (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    slug            TEXT UNIQUE NOT NULL,
    name            TEXT NOT NULL,
    description     TEXT NOT NULL
);

-- ==========================================================================
-- Categories (slug unique within the owning domain only)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS categories (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    domain_id       INTEGER NOT NULL REFERENCES domains(id) ON DELETE CASCADE,
    slug            TEXT NOT NULL,
    name            TEXT NOT NULL,
    description     TEXT NOT NULL,
    UNIQUE(domain_id, slug)
);

CREATE INDEX IF NOT EXISTS idx_categories_domain ON categories(domain_id);

-- ==========================================================================
-- Patterns (prompt templates)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS patterns (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id     INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
    label           TEXT NOT NULL,
    description     TEXT NOT NULL,
    intention       TEXT NOT NULL,
    template        TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_patterns_category ON patterns(category_id);

-- ==========================================================================
-- Submissions (audit trail; target_pattern_id is not a foreign key)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS submissions (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    type                TEXT NOT NULL CHECK(type IN ('new','modify')),
    status              TEXT NOT NULL DEFAULT 'pending'
                        CHECK(status IN ('pending','accepted','rejected')),
    target_pattern_id   INTEGER,
    domain_slug         TEXT,
    category_slug       TEXT,
    label               TEXT NOT NULL,
    description         TEXT NOT NULL,
    intention           TEXT NOT NULL,
    template            TEXT NOT NULL,
    submitted_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    reviewed_at         TEXT
);

CREATE INDEX IF NOT EXISTS idx_submissions_status ON submissions(status);
CREATE INDEX IF NOT EXISTS idx_submissions_submitted ON submissions(submitted_at);
"""

# Additive column migrations for stores created by older releases.
# Each entry is (table, column, column definition).
MIGRATIONS: list[tuple[str, str, str]] = [
    ("submissions", "source", "TEXT"),
]
