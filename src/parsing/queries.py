"""Import/require query table, keyed by syntax tree root type.

Python trees have a `module` root; JavaScript and TypeScript trees have a
`program` root. Any other root type uses the script patterns.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class QueryPattern:
    source: str
    roles: tuple[str, ...]  # capture names that hold a specifier


MODULE_ROOT = "module"
PROGRAM_ROOT = "program"

PYTHON_PATTERNS: tuple[QueryPattern, ...] = (
    QueryPattern(
        source="(import_from_statement module_name: (dotted_name) @python_from)",
        roles=("python_from",),
    ),
    QueryPattern(
        source="(import_statement name: (dotted_name) @python_import)",
        roles=("python_import",),
    ),
)

SCRIPT_PATTERNS: tuple[QueryPattern, ...] = (
    QueryPattern(
        source="(import_statement source: (string (string_fragment) @import_source))",
        roles=("import_source",),
    ),
    QueryPattern(
        source=(
            "(call_expression"
            " function: (identifier) @function_name"
            " arguments: (arguments (string (string_fragment) @require_source))"
            ' (#eq? @function_name "require"))'
        ),
        roles=("require_source",),
    ),
)

QUERY_TABLE: dict[str, tuple[QueryPattern, ...]] = {
    MODULE_ROOT: PYTHON_PATTERNS,
    PROGRAM_ROOT: SCRIPT_PATTERNS,
}


def patterns_for_root(root_type: str) -> tuple[QueryPattern, ...]:
    return QUERY_TABLE.get(root_type, SCRIPT_PATTERNS)


def compose(patterns: tuple[QueryPattern, ...]) -> tuple[str, frozenset[str]]:
    """Join patterns into one query source plus the set of specifier roles."""

    source = "\n".join(p.source for p in patterns)
    roles = frozenset(r for p in patterns for r in p.roles)
    return source, roles
