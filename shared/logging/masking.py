"""Masking helpers for values written to logs."""

from typing import Any, Mapping, Protocol


class MaskSpec(Protocol):
    start: int
    end: int
    char: str


def mask(value: str, start: int, end: int, char: str = "*") -> str:
    """Mask the middle of ``value``.

    Keeps ``start`` leading and ``end`` trailing characters. When the kept
    parts would cover the whole string, every character is masked.

    >>> mask("0987654321", 0, 3, "*")
    '*******321'
    >>> mask("abc", 2, 2, "x")
    'xxx'
    """
    start = max(start, 0)
    end = max(end, 0)
    if start + end >= len(value):
        return char * len(value)
    return value[:start] + char * (len(value) - start - end) + value[len(value) - end:]


def mask_fields(data: Any, rules: Mapping[str, MaskSpec]) -> Any:
    """Recursively mask the string values of fields named in ``rules``.

    Args:
        data: Decoded JSON value (dict, list, or primitive)
        rules: Field name to masking rule

    Returns:
        A masked copy; the input is not modified
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            rule = rules.get(key)
            if rule is not None and isinstance(value, str):
                masked[key] = mask(value, rule.start, rule.end, rule.char)
            else:
                masked[key] = mask_fields(value, rules)
        return masked

    if isinstance(data, list):
        return [mask_fields(item, rules) for item in data]

    return data
