"""Internal record contracts shared by discovery, parsing and persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


DEPENDS_ON = "DEPENDS_ON"
FILE_GROUP = "file"


@dataclass(frozen=True)
class DiscoveredFile:
    path: str  # repo-relative POSIX path, unique within a run
    abs_path: Path

    @property
    def extension(self) -> str:
        dot = self.path.rfind(".")
        if dot <= self.path.rfind("/"):
            return ""
        return self.path[dot:].lower()


@dataclass(frozen=True)
class ParsedFile:
    file: DiscoveredFile
    content: str
    specifiers: tuple[str, ...] = ()

    @property
    def path(self) -> str:
        return self.file.path


@dataclass(frozen=True)
class ResolvedEdge:
    from_path: str
    to_path: str
    rel_type: str = DEPENDS_ON


@dataclass(frozen=True)
class GraphNodeView:
    id: str
    group: str = FILE_GROUP


@dataclass(frozen=True)
class GraphLinkView:
    source: str
    target: str
    type: str


@dataclass(frozen=True)
class GraphSnapshot:
    nodes: list[GraphNodeView] = field(default_factory=list)
    links: list[GraphLinkView] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "nodes": [{"id": n.id, "group": n.group} for n in self.nodes],
            "links": [{"source": l.source, "target": l.target, "type": l.type} for l in self.links],
        }


@dataclass(frozen=True)
class RebuildStats:
    discovered: int
    nodes_written: int
    edges_written: int
    skipped_files: tuple[str, ...] = ()


class IngestionState(str, Enum):
    IDLE = "idle"
    CLONED = "cloned"
    DISCOVERED = "discovered"
    PROCESSING = "processing"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
