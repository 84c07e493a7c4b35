"""Roster backend package: person models, callsign search, and APIs.

This package resolves free-text queries (callsigns, names, emails, numeric
ids) to person records and ranks the matches.
"""
