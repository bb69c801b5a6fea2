"""
Feed Sync Backend

Keeps a local article store in step with remote RSS/Atom feeds.
Provides feed fetching, icon resolution, scheduled refresh and a small HTTP API.
"""

__version__ = "1.0.0"
