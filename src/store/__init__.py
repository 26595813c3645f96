"""Materialization layer.

This package writes the document and relational output forms and
publishes them atomically once a run's staging output is complete.
"""
