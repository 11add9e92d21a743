"""Core domain: jobs, extraction, ingest and export."""
