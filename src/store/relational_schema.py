"""Table definitions for the relational snapshot."""

from __future__ import annotations

from sqlalchemy import (
    Column,
    Float,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
)

METADATA = MetaData()

WATER_QUALITY = Table(
    "water_quality",
    METADATA,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("pwsid", String, nullable=False),
    Column("pws_name", String, nullable=False),
    Column("state", String, nullable=False),
    Column("epa_region", Integer),
    Column("contaminant", String, nullable=False),
    Column("result_value", Float),
    Column("result_sign", String),
    Column("mrl", Float),
    Column("units", String),
    Column("collection_date", String),
    Column("sample_id", String),
    Column("facility_id", String),
    Column("facility_name", String),
    Column("sample_point_id", String),
    Column("sample_point_name", String),
    Column("size", String),
    Column("monitoring_requirement", String),
    Column("method_id", String),
)

PWS_ZIPCODES = Table(
    "pws_zipcodes",
    METADATA,
    Column("pwsid", String, nullable=False),
    Column("zipcode", String, nullable=False),
    PrimaryKeyConstraint("pwsid", "zipcode"),
)

ADDITIONAL_DATA = Table(
    "additional_data",
    METADATA,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("pwsid", String, nullable=False),
    Column("facility_id", String),
    Column("sample_point_id", String),
    Column("sample_event_code", String),
    Column("data_element", String),
    Column("response", Text),
    Column("other_text", Text),
)

PWS_SUMMARY = Table(
    "pws_summary",
    METADATA,
    Column("pwsid", String, primary_key=True),
    Column("pws_name", String, nullable=False),
    Column("state", String, nullable=False),
    Column("epa_region", Integer),
    Column("size", String),
    Column("zip_codes", Text, nullable=False),
    Column("contaminants_detected", Integer, nullable=False),
    Column("last_tested", String),
    Column("total_samples", Integer, nullable=False),
)

# (index name, table, column), created after bulk loading.
SECONDARY_INDICES = (
    ("idx_wq_pwsid", "water_quality", "pwsid"),
    ("idx_wq_state", "water_quality", "state"),
    ("idx_wq_contaminant", "water_quality", "contaminant"),
    ("idx_wq_collection_date", "water_quality", "collection_date"),
    ("idx_pz_zipcode", "pws_zipcodes", "zipcode"),
    ("idx_ad_pwsid", "additional_data", "pwsid"),
    ("idx_ps_state", "pws_summary", "state"),
)
