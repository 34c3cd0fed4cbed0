"""Error types raised by the season core when callers hand it invalid input."""

from __future__ import annotations


class CoachSimError(ValueError):
    pass


class RosterError(CoachSimError):
    """Roster is missing, empty, or has no active competitors."""


class ContestDefinitionError(CoachSimError):
    """Contest definition is malformed or not part of the stage chain."""
