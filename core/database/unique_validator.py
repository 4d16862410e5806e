"""
Unique validator plugin

Fields declared unique on a collection are checked before every insert and
update, so clients get a readable validation error instead of a raw E11000.
Duplicate-key errors that still slip through (concurrent writers) are
translated into the same error.
"""

from typing import Optional

from pymongo.errors import DuplicateKeyError

from ..exceptions import UniqueViolationError
from .collection import WriteEvent, get_path

DEFAULT_MESSAGE = "Error, expected {PATH} to be unique."


def unique_message(template: str, path: str) -> str:
    return template.replace("{PATH}", path)


def unique_validator_plugin(collection, message: str = DEFAULT_MESSAGE) -> None:
    async def check_insert(event: WriteEvent) -> None:
        for path in collection.unique_fields:
            value = get_path(event.document, path)
            if value is None:
                continue
            if await collection.raw.find_one({path: value}) is not None:
                raise UniqueViolationError(path, unique_message(message, path))

    async def check_update(event: WriteEvent) -> None:
        target = None
        for path in collection.unique_fields:
            if path not in event.changes or event.changes[path] is None:
                continue
            clash = await collection.raw.find_one({path: event.changes[path]})
            if clash is None:
                continue
            if target is None:
                target = await collection.raw.find_one(event.filter) or {}
            if clash.get("_id") != target.get("_id"):
                raise UniqueViolationError(path, unique_message(message, path))

    def translate_duplicate_key(_collection, error: Exception) -> Optional[Exception]:
        if not isinstance(error, DuplicateKeyError):
            return None
        key_pattern = (error.details or {}).get("keyPattern") or {}
        path = next(iter(key_pattern), None) or "field"
        return UniqueViolationError(path, unique_message(message, path))

    collection.on_error(translate_duplicate_key)
    if collection.unique_fields:
        collection.pre("insert", check_insert)
        collection.pre("update", check_update)
