"""
Core modules for Session Logger.

This package contains the record model, the query engine and
the session aggregator.
"""
