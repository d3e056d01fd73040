"""Database layer for Cidian (SQLAlchemy ORM over SQLite)."""
