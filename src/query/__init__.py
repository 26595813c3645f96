"""Read adapters over the materialized artifacts."""
