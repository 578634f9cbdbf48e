"""Server - configuration, refresh workers and the HTTP API."""
