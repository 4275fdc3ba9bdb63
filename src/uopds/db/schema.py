# ABOUTME: SQL DDL statements for the uopds metadata store.
# ABOUTME: Defines the books and directories tables, indexes, and schema versioning.

SCHEMA_V1 = """
-- One cached entry per file under the book root
CREATE TABLE books (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    path           TEXT NOT NULL,
    urn            TEXT NOT NULL,
    title          TEXT NOT NULL DEFAULT '',
    author         TEXT NOT NULL DEFAULT '',
    language       TEXT NOT NULL DEFAULT '',
    summary        TEXT NOT NULL DEFAULT '',
    date           TEXT NOT NULL DEFAULT '',
    content_type   TEXT NOT NULL DEFAULT 'application/octet-stream',
    cover_filename TEXT,
    cover_type     TEXT,
    updated_at     TEXT,
    date_added     TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE UNIQUE INDEX idx_books_path ON books(path);

-- Not unique: byte-identical files at different paths share a content-hash urn
CREATE INDEX idx_books_urn ON books(urn);

-- Stable feed ids for directories, created on first render
CREATE TABLE directories (
    path       TEXT NOT NULL PRIMARY KEY,
    urn        TEXT NOT NULL,
    date_added TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

-- Version of the schema this file was created with
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""
