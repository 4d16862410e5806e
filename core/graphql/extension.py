"""
Schema extension running guards and the sanitizer around every root field

Nested fields resolve untouched. For root fields (Query.*, Mutation.*):
guards -> argument trimming -> resolver, with timing recorded either way.
"""

import inspect
import time

from strawberry.extensions import SchemaExtension

from ..sanitizer import trim_strings
from .access import AUTHENTICATED, OperationTarget


class GuardedExecution(SchemaExtension):
    def resolve(self, _next, root, info, *args, **kwargs):
        # nested fields and introspection (__schema, __typename) are not guarded
        if info.path.prev is not None or info.field_name.startswith("__"):
            return _next(root, info, *args, **kwargs)
        return self._resolve_root_field(_next, root, info, *args, **kwargs)

    async def _resolve_root_field(self, _next, root, info, *args, **kwargs):
        context = info.context
        app_context = context.app_context
        parent_type = info.parent_type.name
        target = OperationTarget(
            parent_type,
            info.field_name,
            app_context.access_policies.get((parent_type, info.field_name), AUTHENTICATED),
        )

        decision = await app_context.guard_pipeline.run(context, target)
        if not decision.allowed:
            app_context.metrics.record_graphql_operation(parent_type, info.field_name, "rejected", 0.0)
            raise decision.error

        arguments = trim_strings(kwargs)

        start_time = time.time()
        status = "success"
        try:
            result = _next(root, info, *args, **arguments)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception:
            status = "error"
            raise
        finally:
            app_context.metrics.record_graphql_operation(
                parent_type, info.field_name, status, time.time() - start_time
            )
