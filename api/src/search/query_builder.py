"""
Query builder: translates a populated filter into a MongoDB query.

Predicates for every present filter field are AND-combined. An empty
filter produces ``{}`` and matches the whole collection, which is what a
search without constraints must return (one page of it).
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING

from api.src.errors import SearchValidationError
from api.src.models.common import ErrorMessage
from api.src.search.filter_model import Comparison, FieldMapping, FilterModel

SortSpec = List[Tuple[str, int]]

# Largest skip a BSON int64 can carry.
MAX_SKIP = 2**63 - 1


@dataclass(frozen=True)
class SearchQuery:
    """Everything the repository needs to run one search."""
    filter: Dict[str, Any]
    sort: SortSpec
    skip: int
    limit: int


def get_offset(limit: int, page: Optional[int]) -> int:
    """Offset of the first item of ``page``; pages below 1 count as page 1."""
    if page is None or page < 1:
        page = 1
    return (page - 1) * limit


def is_present(value: Any) -> bool:
    """Whether a filter value constrains the search."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple, set)):
        return len(value) > 0
    if isinstance(value, BaseModel):
        return any(v is not None for v in value.model_dump().values())
    return True


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _regex(pattern: str, case_insensitive: bool) -> Dict[str, Any]:
    if case_insensitive:
        return {"$regex": pattern, "$options": "i"}
    return {"$regex": pattern}


def build_predicate(mapping: FieldMapping, value: Any) -> Dict[str, Any]:
    """Build the query fragment for one filter field."""
    column = mapping.column

    if mapping.comparison == Comparison.EXACT:
        return {column: _plain(value)}

    if mapping.comparison == Comparison.CONTAINS:
        return {column: _regex(re.escape(value.strip()), mapping.case_insensitive)}

    if mapping.comparison == Comparison.PREFIX:
        return {column: _regex("^" + re.escape(value.strip()), mapping.case_insensitive)}

    if mapping.comparison == Comparison.IN:
        values = value if isinstance(value, (list, tuple, set)) else [value]
        return {column: {"$in": [_plain(v) for v in values]}}

    if mapping.comparison == Comparison.RANGE:
        bounds = {}
        lower = getattr(value, "min", None)
        upper = getattr(value, "max", None)
        if lower is not None:
            bounds["$gte"] = lower
        if upper is not None:
            bounds["$lte"] = upper
        return {column: bounds}

    raise ValueError(f"Unsupported comparison: {mapping.comparison}")


def build_query(flt: BaseModel, model: FilterModel) -> Dict[str, Any]:
    """
    Build the MongoDB filter document for a populated filter.

    Args:
        flt: Filter value; absent (None/empty) fields are unconstrained
        model: Filter model of the resource

    Returns:
        Query document; ``{}`` when no predicate is active
    """
    predicates: List[Dict[str, Any]] = []

    for name, mapping in model.fields.items():
        value = getattr(flt, name, None)
        if is_present(value):
            predicates.append(build_predicate(mapping, value))

    term = getattr(flt, "q", None)
    if is_present(term) and model.text_columns:
        pattern = re.escape(term.strip())
        predicates.append({
            "$or": [{column: _regex(pattern, True)} for column in model.text_columns]
        })

    if not predicates:
        return {}
    if len(predicates) == 1:
        return predicates[0]
    return {"$and": predicates}


def build_sort(sort: Optional[str], model: FilterModel) -> Tuple[SortSpec, List[ErrorMessage]]:
    """
    Parse a sort expression such as ``"-username,email"``.

    The primary key ascending is always the last key so that pages are
    stable when other keys tie.

    Returns:
        Tuple of (sort spec, errors for unknown fields)
    """
    spec: SortSpec = []
    errors: List[ErrorMessage] = []

    for token in (sort or "").split(","):
        token = token.strip()
        if not token:
            continue
        direction = ASCENDING
        if token[0] in "+-":
            direction = DESCENDING if token[0] == "-" else ASCENDING
            token = token[1:].strip()
        column = model.sortable.get(token)
        if column is None:
            errors.append(ErrorMessage(
                field="sort",
                code="invalid",
                message=f"Cannot sort by '{token}'"
            ))
            continue
        if all(existing != column for existing, _ in spec):
            spec.append((column, direction))

    if all(existing != model.key_column for existing, _ in spec):
        spec.append((model.key_column, ASCENDING))

    return spec, errors


def build_search(
    flt: BaseModel,
    model: FilterModel,
    default_limit: int,
    max_limit: int,
) -> SearchQuery:
    """
    Build the full search request: query, sort and page window.

    Raises:
        SearchValidationError: If the limit, page or sort expression is invalid
    """
    errors: List[ErrorMessage] = []

    limit = getattr(flt, "limit", None)
    if limit is None:
        limit = default_limit
    if limit <= 0:
        errors.append(ErrorMessage(field="limit", code="min", message="Limit must be greater than 0"))
    elif limit > max_limit:
        errors.append(ErrorMessage(
            field="limit",
            code="max",
            message=f"Limit must not be greater than {max_limit}"
        ))

    skip = 0
    if not errors:
        skip = get_offset(limit, getattr(flt, "page", None))
        if skip > MAX_SKIP:
            errors.append(ErrorMessage(
                field="page",
                code="max",
                message=f"Page must not be greater than {MAX_SKIP // limit + 1}"
            ))

    sort, sort_errors = build_sort(getattr(flt, "sort", None), model)
    errors.extend(sort_errors)

    if errors:
        raise SearchValidationError(errors)

    return SearchQuery(
        filter=build_query(flt, model),
        sort=sort,
        skip=skip,
        limit=limit,
    )
