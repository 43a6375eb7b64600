"""Database package - engine, session and ORM models."""
