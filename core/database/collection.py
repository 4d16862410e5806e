"""
Collection wrapper with write hooks

Every collection handed out by DatabaseConnection is a ModelCollection. Plugins
registered on the connection run against each one as it is created and may:
- add pre/post write hooks (validation, audit logging, ...)
- add error translators (driver errors -> ApiError)
- add statics, reachable as plain methods (collection.paginate(...))
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

from ..decorators import track_mongodb_query
from ..exceptions import NotFoundError

WRITE_OPERATIONS = ("insert", "update", "delete")


@dataclass
class WriteEvent:
    """One write against a collection, as seen by hooks"""

    collection: "ModelCollection"
    operation: str
    filter: Dict[str, Any] = field(default_factory=dict)
    document: Optional[Dict[str, Any]] = None
    changes: Dict[str, Any] = field(default_factory=dict)
    actor_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def document_id(self) -> Optional[str]:
        if self.document and self.document.get("_id") is not None:
            return str(self.document["_id"])
        return None


Hook = Callable[[WriteEvent], Awaitable[None]]
ErrorTranslator = Callable[["ModelCollection", Exception], Optional[Exception]]


def to_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFoundError(f"Invalid id: {value}")


def get_path(document: Dict[str, Any], path: str) -> Any:
    """Dotted path lookup ('profile.email')"""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


class ModelCollection:
    def __init__(
        self,
        connection,
        name: str,
        unique_fields: Sequence[str] = (),
        indexes: Sequence[Tuple[Any, Dict[str, Any]]] = (),
    ):
        self.connection = connection
        self.name = name
        self.unique_fields: Tuple[str, ...] = tuple(unique_fields)
        self.indexes: List[Tuple[Any, Dict[str, Any]]] = list(indexes)
        self._pre_hooks: Dict[str, List[Hook]] = {op: [] for op in WRITE_OPERATIONS}
        self._post_hooks: Dict[str, List[Hook]] = {op: [] for op in WRITE_OPERATIONS}
        self._error_translators: List[ErrorTranslator] = []
        self._statics: Dict[str, Callable[..., Any]] = {}

    def __repr__(self):
        return f"ModelCollection({self.name!r})"

    # ===== plugin surface =====

    def pre(self, operation: str, hook: Hook) -> None:
        self._pre_hooks[operation].append(hook)

    def post(self, operation: str, hook: Hook) -> None:
        self._post_hooks[operation].append(hook)

    def on_error(self, translator: ErrorTranslator) -> None:
        self._error_translators.append(translator)

    def static(self, name: str, function: Callable[..., Any]) -> None:
        """Attach ``function(collection, ...)`` as ``collection.<name>(...)``"""
        self._statics[name] = function

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        statics = self.__dict__.get("_statics", {})
        if name in statics:
            return partial(statics[name], self)
        raise AttributeError(f"{self!r} has no attribute {name!r}")

    # ===== raw access =====

    @property
    def raw(self) -> AsyncIOMotorCollection:
        return self.connection.database[self.name]

    async def ensure_indexes(self) -> None:
        for keys, options in self.indexes:
            await self.raw.create_index(keys, **options)

    # ===== reads =====

    @track_mongodb_query("find_one")
    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.raw.find_one(query)

    async def find_by_id(self, document_id: Any) -> Optional[Dict[str, Any]]:
        return await self.find_one({"_id": to_object_id(document_id)})

    @track_mongodb_query("find")
    async def find(
        self,
        query: Optional[Dict[str, Any]] = None,
        sort: Optional[List[Tuple[str, int]]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        cursor = self.raw.find(query or {})
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=limit or None)

    @track_mongodb_query("count_documents")
    async def count_documents(self, query: Optional[Dict[str, Any]] = None) -> int:
        return await self.raw.count_documents(query or {})

    # ===== writes =====

    @track_mongodb_query("insert_one")
    async def insert_one(
        self, document: Dict[str, Any], actor_id: Optional[str] = None
    ) -> Dict[str, Any]:
        document = dict(document)
        event = WriteEvent(self, "insert", document=document, actor_id=actor_id)
        await self._run_hooks(self._pre_hooks["insert"], event)

        try:
            result = await self.raw.insert_one(document)
        except Exception as error:
            translated = self._translate_error(error)
            if translated is error:
                raise
            raise translated from error

        document["_id"] = result.inserted_id
        await self._run_hooks(self._post_hooks["insert"], event)
        return document

    @track_mongodb_query("update_one")
    async def update_one(
        self,
        query: Dict[str, Any],
        changes: Dict[str, Any],
        actor_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """$set ``changes`` on the first match, returning the updated document"""
        event = WriteEvent(self, "update", filter=query, changes=dict(changes), actor_id=actor_id)
        await self._run_hooks(self._pre_hooks["update"], event)

        try:
            updated = await self.raw.find_one_and_update(
                query, {"$set": event.changes}, return_document=ReturnDocument.AFTER
            )
        except Exception as error:
            translated = self._translate_error(error)
            if translated is error:
                raise
            raise translated from error

        if updated is None:
            return None
        event.document = updated
        await self._run_hooks(self._post_hooks["update"], event)
        return updated

    @track_mongodb_query("delete_one")
    async def delete_one(
        self, query: Dict[str, Any], actor_id: Optional[str] = None
    ) -> bool:
        event = WriteEvent(self, "delete", filter=query, actor_id=actor_id)
        await self._run_hooks(self._pre_hooks["delete"], event)

        deleted = await self.raw.find_one_and_delete(query)
        if deleted is None:
            return False
        event.document = deleted
        await self._run_hooks(self._post_hooks["delete"], event)
        return True

    # ===== internals =====

    async def _run_hooks(self, hooks: List[Hook], event: WriteEvent) -> None:
        for hook in hooks:
            await hook(event)

    def _translate_error(self, error: Exception) -> Exception:
        for translator in self._error_translators:
            translated = translator(self, error)
            if translated is not None:
                return translated
        return error
