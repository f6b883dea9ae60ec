"""Database schema for the index store."""

SCHEMA = """
-- Chunks table: text windows of indexed files
CREATE TABLE IF NOT EXISTS file_chunks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    scope_kind TEXT NOT NULL,          -- 'project' or 'container'
    scope_key TEXT NOT NULL,           -- project path or container id
    file_path TEXT NOT NULL,           -- relative to the scope root
    content TEXT NOT NULL,
    chunk_index INTEGER NOT NULL,
    last_modified TEXT NOT NULL,
    embedding_dimension INTEGER NOT NULL
);

-- Embeddings table: one float32 vector per chunk
CREATE TABLE IF NOT EXISTS file_chunk_embeddings (
    chunk_id INTEGER PRIMARY KEY,
    embedding BLOB NOT NULL,
    FOREIGN KEY (chunk_id) REFERENCES file_chunks(id)
);

-- File tree table: snapshot of each scope's structure
CREATE TABLE IF NOT EXISTS file_tree (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    scope_kind TEXT NOT NULL,
    scope_key TEXT NOT NULL,
    file_path TEXT NOT NULL,
    is_directory INTEGER NOT NULL,
    parent_path TEXT,
    last_indexed TEXT NOT NULL,
    UNIQUE (scope_kind, scope_key, file_path)
);

-- Repo metadata table: one row per scope
CREATE TABLE IF NOT EXISTS repo_metadata (
    scope_kind TEXT NOT NULL,
    scope_key TEXT NOT NULL,
    remote_url TEXT,
    branch TEXT,
    last_commit TEXT,
    last_commit_message TEXT,
    last_indexed TEXT NOT NULL,
    PRIMARY KEY (scope_kind, scope_key)
);

-- Metadata table: store-wide key/value pairs (embedding model, dimension)
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT
);

-- Indexes for efficient queries
CREATE INDEX IF NOT EXISTS idx_chunks_scope_file ON file_chunks(scope_kind, scope_key, file_path);
CREATE INDEX IF NOT EXISTS idx_tree_scope ON file_tree(scope_kind, scope_key);
CREATE INDEX IF NOT EXISTS idx_tree_parent ON file_tree(parent_path);
"""
