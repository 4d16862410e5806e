"""
Ahead-of-time schema construction

The schema is composed from the resolver classes each feature module lists:
all query classes merge into Query, all mutation classes into Mutation. The
result is sorted lexicographically and the per-field access policies are
collected once, keyed by (root type, GraphQL field name).
"""

from typing import Dict, Optional, Sequence, Tuple, Type

import strawberry
from graphql import lexicographic_sort_schema
from strawberry.tools import merge_types

from .access import AccessPolicy, policy_of
from .extension import GuardedExecution

AccessPolicies = Dict[Tuple[str, str], AccessPolicy]


def sort_schema(schema: strawberry.Schema) -> strawberry.Schema:
    """Replace the executable schema with its lexicographically sorted copy"""
    sorted_schema = lexicographic_sort_schema(schema._schema)
    strawberry_backref = getattr(schema._schema, "_strawberry_schema", None)
    if strawberry_backref is not None:
        sorted_schema._strawberry_schema = strawberry_backref
    schema._schema = sorted_schema
    return schema


def collect_access_policies(
    schema: strawberry.Schema, roots: Dict[str, Optional[Type]]
) -> AccessPolicies:
    name_converter = schema.config.name_converter
    policies: AccessPolicies = {}
    for root_name, root_type in roots.items():
        if root_type is None:
            continue
        for field in root_type.__strawberry_definition__.fields:
            graphql_name = name_converter.get_graphql_name(field)
            policies[(root_name, graphql_name)] = policy_of(field.metadata)
    return policies


def build_schema(
    query_types: Sequence[Type], mutation_types: Sequence[Type] = ()
) -> Tuple[strawberry.Schema, AccessPolicies]:
    if not query_types:
        raise ValueError("At least one query type is required to build a schema")

    query = merge_types("Query", tuple(query_types))
    mutation = merge_types("Mutation", tuple(mutation_types)) if mutation_types else None

    schema = strawberry.Schema(query=query, mutation=mutation, extensions=[GuardedExecution])
    sort_schema(schema)

    policies = collect_access_policies(schema, {"Query": query, "Mutation": mutation})
    return schema, policies


def schema_sdl(schema: strawberry.Schema) -> str:
    return schema.as_str()
