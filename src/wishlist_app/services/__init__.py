"""Storage-backed services behind the HTTP routes."""
