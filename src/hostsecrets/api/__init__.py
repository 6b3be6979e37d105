"""Host HTTP API."""
