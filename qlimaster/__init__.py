"""Pub-quiz score keeping: scores, rankings, team history, exports and table layout helpers."""

__version__ = "0.1.0"