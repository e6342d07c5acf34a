"""Database engine, sessions and generic persistence helpers."""
