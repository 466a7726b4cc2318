"""Tree-sitter grammar registry and extension dispatch.

The registry is built once at process start. TypeScript and TSX grammars are
optional: when one cannot be loaded its tag is served by the JavaScript
grammar and `is_full_fidelity(tag)` reports False.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from tree_sitter import Language, Parser, Tree
from tree_sitter_language_pack import get_parser

from observability import events
from observability.events import EventSink, default_event_sink


JAVASCRIPT = "javascript"
TYPESCRIPT = "typescript"
TSX = "tsx"
PYTHON = "python"

REQUIRED_TAGS: tuple[str, ...] = (JAVASCRIPT, PYTHON)
OPTIONAL_TAGS: tuple[str, ...] = (TYPESCRIPT, TSX)
FALLBACK_TAG = JAVASCRIPT


def language_tag_for(path: str) -> str:
    """Map a file path to the language tag whose grammar parses it."""

    p = path.lower()
    if p.endswith(".tsx"):
        return TSX
    if p.endswith(".ts"):
        return TYPESCRIPT
    if p.endswith((".py", ".ipynb")):
        return PYTHON
    return JAVASCRIPT


@dataclass(frozen=True)
class Grammar:
    tag: str
    parser: Parser
    full_fidelity: bool = True

    @property
    def language(self) -> Language:
        return self.parser.language


@dataclass(frozen=True)
class ParseResult:
    tree: Tree
    language: Language
    tag: str

    @property
    def root_type(self) -> str:
        return self.tree.root_node.type


class GrammarRegistry:
    """Language tag -> parser capability map."""

    def __init__(self, grammars: dict[str, Grammar]):
        missing = [t for t in REQUIRED_TAGS + OPTIONAL_TAGS if t not in grammars]
        if missing:
            raise ValueError(f"Grammar registry is missing tags: {missing}")
        self._grammars = dict(grammars)

    def grammar(self, tag: str) -> Grammar:
        return self._grammars[tag]

    def is_full_fidelity(self, tag: str) -> bool:
        return self._grammars[tag].full_fidelity

    def degraded_tags(self) -> list[str]:
        return sorted(t for t, g in self._grammars.items() if not g.full_fidelity)

    def parse(self, path: str, content: str) -> ParseResult:
        grammar = self._grammars[language_tag_for(path)]
        tree = grammar.parser.parse(content.encode("utf-8"))
        return ParseResult(tree=tree, language=grammar.language, tag=grammar.tag)


def build_grammar_registry(
    loader: Callable[[str], Parser] = get_parser,
    sink: EventSink | None = None,
) -> GrammarRegistry:
    """Load every grammar; optional ones fall back to JavaScript on failure."""

    sink = sink or default_event_sink()
    grammars: dict[str, Grammar] = {}
    for tag in REQUIRED_TAGS:
        grammars[tag] = Grammar(tag=tag, parser=loader(tag))

    for tag in OPTIONAL_TAGS:
        try:
            grammars[tag] = Grammar(tag=tag, parser=loader(tag))
        except Exception as e:
            sink.emit(events.GRAMMAR_DEGRADED, tag=tag, fallback=FALLBACK_TAG, error=str(e))
            grammars[tag] = Grammar(tag=tag, parser=grammars[FALLBACK_TAG].parser, full_fidelity=False)
    return GrammarRegistry(grammars)
