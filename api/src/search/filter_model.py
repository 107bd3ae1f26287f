"""
Filter model: the mapping from filter fields to queryable columns.

Each resource declares its mapping table explicitly. The table is checked
once at startup against the declared fields of the resource and filter
models, so search requests never inspect types at runtime.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple, Type

import structlog
from pydantic import BaseModel

from api.src.errors import FilterModelError
from api.src.models.user import User, UserFilter

logger = structlog.get_logger(__name__)

# Filter fields that drive paging, ordering and free text rather than a column.
META_FIELDS = frozenset({"page", "limit", "sort", "q"})


class Comparison(str, Enum):
    """How a filter value is compared with its column."""
    EXACT = "exact"
    CONTAINS = "contains"
    PREFIX = "prefix"
    RANGE = "range"
    IN = "in"


@dataclass(frozen=True)
class FieldMapping:
    """Target column and comparison for one filter field."""
    column: str
    comparison: Comparison
    case_insensitive: bool = False


@dataclass(frozen=True)
class FilterModel:
    """
    Validated mapping table for one resource type.

    Attributes:
        fields: Filter field name to column mapping
        text_columns: Columns searched by the free text term
        sortable: Resource field name to column for allowed sort keys
        key_column: Primary key column, used as the final sort tiebreaker
    """
    fields: Mapping[str, FieldMapping]
    text_columns: Tuple[str, ...] = ()
    sortable: Mapping[str, str] = field(default_factory=dict)
    key_column: str = "_id"

    @classmethod
    def build(
        cls,
        resource: Type[BaseModel],
        filter_type: Type[BaseModel],
        fields: Mapping[str, FieldMapping],
        text_fields: Iterable[str] = (),
        sortable: Iterable[str] = (),
        strict: bool = True,
        key_field: str = "id",
        key_column: str = "_id",
    ) -> "FilterModel":
        """
        Check a declared mapping table and build the filter model.

        Args:
            resource: Resource model whose fields are stored as columns
            filter_type: Filter model carrying the search parameters
            fields: Declared filter field to column mapping
            text_fields: Resource fields searched by the free text term
            sortable: Resource fields a client may sort by
            strict: Require a mapping for every non-meta filter field
            key_field: Resource field holding the primary key
            key_column: Column the primary key is stored in

        Returns:
            Validated filter model

        Raises:
            FilterModelError: If the table does not match the models
        """
        resource_fields = set(resource.model_fields)
        filter_fields = set(filter_type.model_fields)

        def column_of(name: str) -> str:
            return key_column if name == key_field else name

        columns = {column_of(name) for name in resource_fields}
        problems = []

        for name, mapping in fields.items():
            if name not in filter_fields:
                problems.append(f"'{name}' is not a field of {filter_type.__name__}")
            if mapping.column not in columns:
                problems.append(
                    f"'{name}' maps to '{mapping.column}', which is not a column of {resource.__name__}"
                )

        for name in list(text_fields) + list(sortable):
            if name not in resource_fields:
                problems.append(f"'{name}' is not a field of {resource.__name__}")

        resolved: Dict[str, FieldMapping] = dict(fields)
        for name in sorted(filter_fields - META_FIELDS - set(fields)):
            if strict:
                problems.append(f"filter field '{name}' has no mapped column")
            elif name in resource_fields:
                resolved[name] = FieldMapping(column_of(name), Comparison.EXACT)
                logger.info("filter_field_defaulted", field=name, column=column_of(name))
            else:
                logger.warning("filter_field_ignored", field=name)

        if problems:
            raise FilterModelError(
                f"Invalid filter model for {resource.__name__}: " + "; ".join(problems)
            )

        return cls(
            fields=resolved,
            text_columns=tuple(column_of(name) for name in text_fields),
            sortable={name: column_of(name) for name in sortable},
            key_column=key_column,
        )

    def mapping_for(self, name: str) -> Optional[FieldMapping]:
        return self.fields.get(name)


USER_FILTER_FIELDS: Mapping[str, FieldMapping] = {
    "id": FieldMapping("_id", Comparison.EXACT),
    "username": FieldMapping("username", Comparison.CONTAINS, case_insensitive=True),
    "email": FieldMapping("email", Comparison.PREFIX, case_insensitive=True),
    "phone": FieldMapping("phone", Comparison.PREFIX),
    "status": FieldMapping("status", Comparison.IN),
    "date_of_birth": FieldMapping("date_of_birth", Comparison.RANGE),
}

USER_TEXT_FIELDS = ("username", "email")

USER_SORTABLE_FIELDS = ("id", "username", "email", "phone", "date_of_birth", "status")


def build_user_filter_model(strict: bool = True) -> FilterModel:
    """Build the user filter model; called once by the application factory."""
    return FilterModel.build(
        resource=User,
        filter_type=UserFilter,
        fields=USER_FILTER_FIELDS,
        text_fields=USER_TEXT_FIELDS,
        sortable=USER_SORTABLE_FIELDS,
        strict=strict,
    )
