"""
Offer Notify - Watch an offers feed and push ntfy notifications.

A Python application that polls a single RSS feed for new entries
and publishes one ntfy notification per entry, exactly once.
"""

__version__ = "1.0.0"
