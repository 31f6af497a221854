"""Read-side projections of collection snapshots."""

from jantrik.queries.view import build_collection_view, search_entries

__all__ = ["build_collection_view", "search_entries"]
