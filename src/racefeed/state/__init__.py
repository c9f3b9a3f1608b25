"""State/store layer.

This package is the single source of truth for how incoming feed messages
are merged into a deterministic per-driver snapshot.
"""
