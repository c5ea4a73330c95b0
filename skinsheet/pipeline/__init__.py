"""SkinSheet — Sheet ingest and Steam enrichment pipeline."""
