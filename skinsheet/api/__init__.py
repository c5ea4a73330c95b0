"""SkinSheet — HTTP API."""
