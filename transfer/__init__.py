"""
Data Transfer Toolkit

Moves users, database schema, documents, files and functions from one
backend to another, batch by batch.

Supports:
- NHost (Postgres) as a source, with optional storage files
- Appwrite and a local JSON staging directory as destinations
- Schema conversion from Postgres columns and indexes
- Password hash migration without forcing a reset
- Per-item failure isolation with progress snapshots and logs
"""

__version__ = "0.1.0"
