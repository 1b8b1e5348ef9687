"""PostgreSQL connection and session handling."""
