"""Infrastructure layer — SQLite persistence and the Store facade."""
