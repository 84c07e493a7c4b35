"""Callsign resolution and ranked person search.

Each step (normalize, encode, plan, rank, paginate) is callable on its own so
the write path and the search endpoints share the same keys.
"""
