"""
Decoding of search requests into filter models.

GET requests carry the filter in the query string (``status`` may repeat
or be comma separated, range bounds use ``date_of_birth.min`` style keys);
POST requests carry the same fields as a JSON object.
"""

from typing import Any, Dict, Iterable, Iterator, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from api.src.errors import FilterDecodeError

F = TypeVar("F", bound=BaseModel)

USER_LIST_FIELDS = ("status",)


def _split(value: str) -> list:
    return [part.strip() for part in value.split(",") if part.strip()]


def _validate(data: Dict[str, Any], filter_type: Type[F]) -> F:
    try:
        return filter_type.model_validate(data)
    except ValidationError as e:
        raise FilterDecodeError(str(e)) from e


def decode_query_params(
    items: Iterable[Tuple[str, str]],
    filter_type: Type[F],
    list_fields: Iterable[str] = USER_LIST_FIELDS,
) -> F:
    """
    Decode query string pairs into a filter.

    Args:
        items: (key, value) pairs, repeated keys allowed
        filter_type: Filter model to build
        list_fields: Fields that hold several values

    Returns:
        Populated filter

    Raises:
        FilterDecodeError: If a value has the wrong type or shape
    """
    list_fields = set(list_fields)
    data: Dict[str, Any] = {}

    for key, value in items:
        if value == "":
            continue
        if "." in key:
            parent, child = key.split(".", 1)
            nested = data.setdefault(parent, {})
            if not isinstance(nested, dict):
                raise FilterDecodeError(f"'{parent}' cannot be both a value and an object")
            nested[child] = value
        elif key in list_fields:
            data.setdefault(key, []).extend(_split(value))
        else:
            data[key] = value

    return _validate(data, filter_type)


def decode_body(
    payload: Any,
    filter_type: Type[F],
    list_fields: Iterable[str] = USER_LIST_FIELDS,
) -> F:
    """
    Decode a JSON search body into a filter.

    A single string is accepted where a list is expected.

    Raises:
        FilterDecodeError: If the body is not an object or a value is invalid
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise FilterDecodeError("Search body must be a JSON object")

    data = dict(payload)
    for name in list_fields:
        if isinstance(data.get(name), str):
            data[name] = _split(data[name])

    return _validate(data, filter_type)


def iter_query_items(query_params) -> Iterator[Tuple[str, str]]:
    """Adapt starlette QueryParams (or any multi-dict) to (key, value) pairs."""
    if hasattr(query_params, "multi_items"):
        return iter(query_params.multi_items())
    return iter(query_params.items())
