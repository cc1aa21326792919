"""State/store layer.

This package is the single source of truth for how requests arriving from
REST snapshots and live stream events are merged into one deduplicated,
most-recent-first collection.
"""
