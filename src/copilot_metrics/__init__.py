"""Copilot metrics dashboard backend.

Aggregates a GitHub user's repositories, commits and organizations into
dashboard metrics behind an OAuth-authenticated HTTP API.
"""

__version__ = "0.3.0"
