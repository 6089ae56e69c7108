"""HTTP API for the wishlist app."""
