"""Search support: filter models, filter decoding and query building."""

from api.src.search.decoder import decode_body, decode_query_params, iter_query_items
from api.src.search.filter_model import (
    Comparison,
    FieldMapping,
    FilterModel,
    build_user_filter_model,
)
from api.src.search.query_builder import (
    SearchQuery,
    build_query,
    build_search,
    build_sort,
    get_offset,
)

__all__ = [
    "Comparison",
    "FieldMapping",
    "FilterModel",
    "SearchQuery",
    "build_query",
    "build_search",
    "build_sort",
    "build_user_filter_model",
    "decode_body",
    "decode_query_params",
    "get_offset",
    "iter_query_items",
]
