"""Database and configuration diagnostics."""
