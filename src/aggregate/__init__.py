"""Aggregation layer.

This module folds streamed sample rows into per-facility summaries
and joins the postal code and supplementary cross-reference files.
"""
