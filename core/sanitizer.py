"""Argument sanitizer - trims every string in a resolver's argument tree"""

import copy
import dataclasses
from enum import Enum
from typing import Any


def trim_strings(value: Any) -> Any:
    """
    Strip leading/trailing whitespace from every string reachable through
    dicts, lists, tuples and input objects (dataclasses). Everything else,
    enum members included, comes back untouched. Input objects are copied,
    never mutated.
    """
    if isinstance(value, Enum):
        return value
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        return {key: trim_strings(item) for key, item in value.items()}
    if isinstance(value, list):
        return [trim_strings(item) for item in value]
    if isinstance(value, tuple):
        return tuple(trim_strings(item) for item in value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        clone = copy.copy(value)
        for field in dataclasses.fields(value):
            setattr(clone, field.name, trim_strings(getattr(value, field.name)))
        return clone
    return value
