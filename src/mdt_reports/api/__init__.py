"""Keep-alive and lookup HTTP API."""
