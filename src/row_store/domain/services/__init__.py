"""Domain services - stateless logic over tables.

Exports the query evaluator used by ``Table.select_rows``. The table codec
builds ``Table`` instances and is imported from its own module,
``row_store.domain.services.table_codec``, to keep this package importable
from the entity layer.

Exports:
    - Operator, SeqScanOperator, FilterOperator, ProjectOperator
    - EqualityPredicate, parse_predicate, resolve_projection, evaluate
"""

from row_store.domain.services.query_evaluator import (
    EqualityPredicate,
    FilterOperator,
    Operator,
    ProjectOperator,
    SeqScanOperator,
    build_plan,
    evaluate,
    parse_predicate,
    resolve_projection,
)

__all__ = [
    "Operator",
    "SeqScanOperator",
    "FilterOperator",
    "ProjectOperator",
    "EqualityPredicate",
    "build_plan",
    "parse_predicate",
    "resolve_projection",
    "evaluate",
]
