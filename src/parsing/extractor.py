"""Dependency specifier extraction from a parsed syntax tree."""

from __future__ import annotations

import re

from tree_sitter import Query, QueryCursor  # type: ignore

from observability import events
from observability.events import EventSink, default_event_sink
from parsing.grammars import ParseResult
from parsing.queries import compose, patterns_for_root


_QUOTES_RE = re.compile(r"^['\"`]|['\"`]$")


def strip_quotes(text: str) -> str:
    return _QUOTES_RE.sub("", text)


def extract_specifiers(result: ParseResult, sink: EventSink | None = None) -> list[str]:
    """Return raw specifiers in match order.

    A query that does not compile against the tree's grammar yields [].
    """

    root = result.tree.root_node
    source, roles = compose(patterns_for_root(root.type))
    try:
        query = Query(result.language, source)
    except Exception as e:
        (sink or default_event_sink()).emit(
            events.QUERY_COMPILE_FAILED, tag=result.tag, root_type=root.type, error=str(e)
        )
        return []

    specifiers: list[str] = []
    for _, captures in QueryCursor(query).matches(root):
        for name, nodes in captures.items():
            if name not in roles:
                continue
            if not isinstance(nodes, list):
                nodes = [nodes]
            for node in nodes:
                text = node.text.decode("utf-8", errors="replace")
                specifiers.append(strip_quotes(text))
    return specifiers
