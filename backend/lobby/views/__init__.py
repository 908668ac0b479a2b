"""JSON request handlers for the lobby HTTP API."""
