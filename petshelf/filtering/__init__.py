"""
Filtering and sorting of catalog and collection views.

Views are derived from catalog + collection state on every call and
never mutate either.
"""

from petshelf.filtering.view_pipeline import (
    DEFAULT_SORT,
    SortDirection,
    SortKey,
    SortSpec,
    ViewPipeline,
    instance_matches,
    item_matches,
    normalize_query,
    sort_instances,
    sort_items,
)

__all__ = [
    "DEFAULT_SORT",
    "SortDirection",
    "SortKey",
    "SortSpec",
    "ViewPipeline",
    "instance_matches",
    "item_matches",
    "normalize_query",
    "sort_instances",
    "sort_items",
]
