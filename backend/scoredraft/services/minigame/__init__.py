"""Mini-game domain services: turn order, picks, golden locks, scoring.

This package contains pure(ish) domain logic that should be imported by
HTTP routes, CLI commands and socket handlers, keeping transport concerns
separated from core game mechanics.
"""
