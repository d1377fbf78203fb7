"""Database base classes, engine and session management."""
