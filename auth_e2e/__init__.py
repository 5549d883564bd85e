"""End-to-end harness for the auth service HTTP API and UI."""

__version__ = "1.0.0"
