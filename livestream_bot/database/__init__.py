"""database: SQLite journal of status events and purchase attempts."""
