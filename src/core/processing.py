"""Per-file processing: normalize -> parse -> extract."""

from __future__ import annotations

from core.normalizer import normalize_content
from core.records import DiscoveredFile, ParsedFile
from observability import events
from observability.events import EventSink, default_event_sink
from parsing.extractor import extract_specifiers
from parsing.grammars import GrammarRegistry


class FileProcessor:
    """Turns a discovered file into a ParsedFile, or None when parsing fails.

    Reading and decoding happen outside the recovered zone: an undecodable
    non-notebook file raises and aborts the surrounding transaction.
    """

    def __init__(self, registry: GrammarRegistry, sink: EventSink | None = None):
        self.registry = registry
        self.sink = sink or default_event_sink()

    def __call__(self, file: DiscoveredFile) -> ParsedFile | None:
        content = normalize_content(file, sink=self.sink)
        try:
            result = self.registry.parse(file.path, content)
            specifiers = extract_specifiers(result, sink=self.sink)
        except Exception as e:
            self.sink.emit(events.FILE_PARSE_FAILED, path=file.path, error=str(e))
            return None
        return ParsedFile(file=file, content=content, specifiers=tuple(specifiers))
