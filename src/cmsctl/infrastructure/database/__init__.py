"""Database layer — SQLAlchemy Core tables and engine setup."""
