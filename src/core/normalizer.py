"""Content normalization ahead of parsing.

Notebooks are reduced to their code cells; every other file is read as
UTF-8 text.
"""

from __future__ import annotations

import json

from core.records import DiscoveredFile
from observability import events
from observability.events import EventSink, default_event_sink


NOTEBOOK_EXTENSION = ".ipynb"


def notebook_code(document: dict) -> str:
    """Concatenate the source of code cells in document order.

    A cell's source may be a list of lines (joined without separator) or a
    single string; any other source contributes an empty cell. Cells are
    joined with a newline.
    """

    chunks: list[str] = []
    for cell in document["cells"]:
        if not isinstance(cell, dict) or cell.get("cell_type") != "code":
            continue
        source = cell.get("source")
        if isinstance(source, list):
            chunks.append("".join(line for line in source if isinstance(line, str)))
        elif isinstance(source, str):
            chunks.append(source)
        else:
            chunks.append("")
    return "\n".join(chunks)


def normalize_content(file: DiscoveredFile, sink: EventSink | None = None) -> str:
    """Return parseable text for `file`.

    A notebook that cannot be read as a cell document yields "" and the file
    still goes on to parsing. For other files a decode error propagates.
    """

    if file.extension != NOTEBOOK_EXTENSION:
        return file.abs_path.read_bytes().decode("utf-8")

    try:
        document = json.loads(file.abs_path.read_bytes().decode("utf-8"))
        return notebook_code(document)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
        (sink or default_event_sink()).emit(
            events.NOTEBOOK_DECODE_FAILED, path=file.path, error=str(e)
        )
        return ""
