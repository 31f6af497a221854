"""
Collection View

Derives what the collection page shows from a snapshot:
the searchable list of active numbers plus the headline totals.

This is a pure projection. Nothing is cached; the view is rebuilt from
the snapshot on every rerun of the page.
"""

from jantrik.models.collection import (
    AmountTier,
    CollectionConfig,
    CollectionSnapshot,
    CollectionView,
    ViewEntry,
)


def search_entries(
    snapshot: CollectionSnapshot,
    search_term: str = "",
) -> list[tuple[str, float]]:
    """
    Active entries whose key contains `search_term`, ordered by key.

    Matching is literal, case-sensitive substring containment. An empty
    term matches every active entry. Keys are compared as strings, which
    equals numeric order because all keys share one width.
    """
    matches = [
        (number, amount)
        for number, amount in snapshot.items()
        if amount > 0 and (not search_term or search_term in number)
    ]
    return sorted(matches, key=lambda pair: pair[0])


def build_collection_view(
    snapshot: CollectionSnapshot,
    config: CollectionConfig,
    search_term: str = "",
) -> CollectionView:
    """
    Build the page projection.

    Counts and totals always cover the whole snapshot, whatever the
    search term.
    """
    entries = [
        ViewEntry(number=number, amount=amount, tier=AmountTier.for_amount(amount))
        for number, amount in search_entries(snapshot, search_term)
    ]
    return CollectionView(
        collection_type=config.collection_type,
        search_term=search_term,
        entries=entries,
        active_count=snapshot.active_count,
        total_amount=snapshot.total_amount,
        available_count=config.available_count,
    )
