"""Linkboard: link-aggregation backend with voting, karma and moderation."""

__version__ = "0.1.0"
