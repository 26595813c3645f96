"""Source ingestion and build orchestration.

This package streams the tab-delimited source files into typed records
and drives one full rebuild of the published artifacts.
"""
