"""Process-wide database handle shared by routers and health checks."""

from taskkit.core import Database

# Set by the service lifespan once the database is initialized
_database: Database | None = None


def set_database(database: Database) -> None:
    """Set the global database instance."""
    global _database
    _database = database


def get_database() -> Database:
    """Get the global database instance."""
    if _database is None:
        raise RuntimeError("Database not initialized. Call set_database() during app startup.")
    return _database
