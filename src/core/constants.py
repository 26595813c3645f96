"""Core constants used across waterq modules.

This module centralizes artifact names and source literals.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_OUTPUT_ROOT = Path("build")
DEFAULT_SOURCE_ENCODING = "latin-1"
DEFAULT_INSERT_BATCH_SIZE = 1000
DEFAULT_PROGRESS_INTERVAL = 100000
DEFAULT_QUERY_LIMIT = 50
SOURCE_DELIMITER = "\t"
DOCUMENTS_DIR_NAME = "data"
DATABASE_FILE_NAME = "ucmr5-data.db"
REGION_INDEX_FILE_NAME = "index.json"
POSTAL_INDEX_FILE_NAME = "zip-index.json"
ADDITIONAL_DATA_FILE_NAME = "additional-data.json"
MANIFEST_FILE_NAME = "manifest.json"
SHARD_FILE_SUFFIX = ".json"
RESULT_SIGN_EXACT = "="
RESULT_SIGN_BELOW_LIMIT = "<"
UNKNOWN_REGION = "UNKNOWN"
OUTPUT_FORMAT_DOCUMENTS = "documents"
OUTPUT_FORMAT_RELATIONAL = "relational"
OUTPUT_FORMAT_BOTH = "both"
SUPPORTED_OUTPUT_FORMATS = (OUTPUT_FORMAT_DOCUMENTS, OUTPUT_FORMAT_RELATIONAL, OUTPUT_FORMAT_BOTH)
QUERY_SOURCE_DOCUMENTS = "documents"
QUERY_SOURCE_RELATIONAL = "relational"
SUPPORTED_QUERY_SOURCES = (QUERY_SOURCE_DOCUMENTS, QUERY_SOURCE_RELATIONAL)
