"""Database schema for the ticket store.

Custom field values live in ``field_values`` with one storage column per
primitive type; ``fields.data_type`` decides which column is meaningful.
"""

from __future__ import annotations

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS users (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    username    TEXT NOT NULL UNIQUE,
    email       TEXT NOT NULL DEFAULT '',
    full_name   TEXT NOT NULL DEFAULT '',
    profile_pic TEXT NOT NULL DEFAULT '',
    is_admin    BOOLEAN NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS statuses (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS ticket_types (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS projects (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    key        TEXT NOT NULL UNIQUE,
    name       TEXT NOT NULL,
    lead_id    INTEGER REFERENCES users(id),
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS fields (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    name      TEXT NOT NULL UNIQUE,
    data_type TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS field_options (
    id       INTEGER PRIMARY KEY AUTOINCREMENT,
    field_id INTEGER NOT NULL REFERENCES fields(id),
    option   TEXT NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    UNIQUE (field_id, option)
);

CREATE INDEX IF NOT EXISTS idx_field_options_field ON field_options(field_id, position);

CREATE TABLE IF NOT EXISTS tickets (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id     INTEGER NOT NULL REFERENCES projects(id),
    key            TEXT NOT NULL,
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL,
    summary        TEXT NOT NULL,
    description    TEXT NOT NULL DEFAULT '',
    assignee_id    INTEGER NOT NULL REFERENCES users(id),
    reporter_id    INTEGER NOT NULL REFERENCES users(id),
    status_id      INTEGER NOT NULL REFERENCES statuses(id),
    ticket_type_id INTEGER NOT NULL REFERENCES ticket_types(id),
    UNIQUE (project_id, key)
);

CREATE INDEX IF NOT EXISTS idx_tickets_key ON tickets(key);
CREATE INDEX IF NOT EXISTS idx_tickets_project ON tickets(project_id);

CREATE TABLE IF NOT EXISTS field_values (
    id        INTEGER PRIMARY KEY AUTOINCREMENT,
    ticket_id INTEGER NOT NULL REFERENCES tickets(id),
    field_id  INTEGER NOT NULL REFERENCES fields(id),
    int_value INTEGER,
    flt_value REAL,
    str_value TEXT,
    opt_value TEXT,
    dte_value TEXT
);

CREATE INDEX IF NOT EXISTS idx_field_values_ticket ON field_values(ticket_id);

CREATE TABLE IF NOT EXISTS labels (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS tickets_labels (
    ticket_id INTEGER NOT NULL REFERENCES tickets(id),
    label_id  INTEGER NOT NULL REFERENCES labels(id),
    PRIMARY KEY (ticket_id, label_id)
);

-- No REFERENCES on ticket_id: comments are kept when their ticket is removed.
CREATE TABLE IF NOT EXISTS comments (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    ticket_id  INTEGER NOT NULL,
    author_id  INTEGER NOT NULL REFERENCES users(id),
    body       TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_comments_ticket ON comments(ticket_id, created_at);
"""

CURRENT_SCHEMA_VERSION = 1
