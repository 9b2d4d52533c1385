from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar

from pinecone_context.vector.types import MetadataValue, QueryMatch, VectorRecord

DEFAULT_PROJECT = "default"

# Chunk-level keys stored next to the metadata fields.
_CHUNK_KEYS = frozenset({"text", "chunkIndex", "totalChunks", "timestamp"})


class ContextType(StrEnum):
    CONVERSATION = "conversation"
    CODE = "code"
    DOCUMENTATION = "documentation"
    TEXT = "text"
    DEPLOYMENT = "deployment"
    DECISION = "decision"


@dataclass(kw_only=True)
class ContextMetadata:
    """Metadata shared by every chunk of one submission.

    Each subclass carries only the fields relevant to its ``type`` and maps
    them to the camelCase keys stored in the index. ``extra`` holds any
    additional caller-supplied keys.
    """

    type: ClassVar[str]
    _wire_fields: ClassVar[dict[str, str]] = {}

    project: str = DEFAULT_PROJECT
    extra: dict[str, MetadataValue] = field(default_factory=dict)

    def to_wire(self) -> dict[str, MetadataValue]:
        wire: dict[str, MetadataValue] = dict(self.extra)
        wire["type"] = str(self.type)
        wire["project"] = self.project
        for attr, key in self._wire_fields.items():
            wire[key] = getattr(self, attr)
        return wire


@dataclass(kw_only=True)
class ConversationMetadata(ContextMetadata):
    type: ClassVar[str] = ContextType.CONVERSATION
    _wire_fields: ClassVar[dict[str, str]] = {"role": "role"}

    role: str


@dataclass(kw_only=True)
class CodeMetadata(ContextMetadata):
    type: ClassVar[str] = ContextType.CODE
    _wire_fields: ClassVar[dict[str, str]] = {"file_path": "filePath", "language": "language"}

    file_path: str
    language: str = "unknown"


@dataclass(kw_only=True)
class DocumentationMetadata(ContextMetadata):
    type: ClassVar[str] = ContextType.DOCUMENTATION
    _wire_fields: ClassVar[dict[str, str]] = {"title": "title"}

    title: str


@dataclass(kw_only=True)
class TextMetadata(ContextMetadata):
    type: ClassVar[str] = ContextType.TEXT


@dataclass(kw_only=True)
class DeploymentMetadata(ContextMetadata):
    type: ClassVar[str] = ContextType.DEPLOYMENT
    _wire_fields: ClassVar[dict[str, str]] = {
        "repo": "repo",
        "commit": "commit",
        "full_commit": "fullCommit",
        "branch": "branch",
        "author": "author",
        "deployment_type": "deploymentType",
        "priority": "priority",
        "status": "status",
        "changed_files_count": "changedFilesCount",
        "key_files": "keyFiles",
    }

    repo: str
    commit: str
    full_commit: str = ""
    branch: str = ""
    author: str = ""
    deployment_type: str = "general"
    priority: str = "medium"
    status: str = "success"
    changed_files_count: int = 0
    key_files: str = ""

    def __post_init__(self) -> None:
        # the index returns every number as a float
        self.changed_files_count = int(self.changed_files_count)


@dataclass(kw_only=True)
class DecisionMetadata(ContextMetadata):
    type: ClassVar[str] = ContextType.DECISION
    _wire_fields: ClassVar[dict[str, str]] = {"title": "title", "repo": "repo", "commit": "commit"}

    title: str = ""
    repo: str = ""
    commit: str = ""


@dataclass(kw_only=True)
class OtherMetadata(ContextMetadata):
    """Read-side fallback for records whose ``type`` is not a known value."""

    kind: str = "other"

    @property  # type: ignore[misc]
    def type(self) -> str:  # type: ignore[override]
        return self.kind


_METADATA_TYPES: dict[str, type[ContextMetadata]] = {
    cls.type: cls
    for cls in (
        ConversationMetadata,
        CodeMetadata,
        DocumentationMetadata,
        TextMetadata,
        DeploymentMetadata,
        DecisionMetadata,
    )
}


def metadata_from_wire(raw: Mapping[str, Any]) -> ContextMetadata:
    """Parse a stored metadata mapping back into its typed variant."""
    data = {k: v for k, v in raw.items() if k not in _CHUNK_KEYS}
    raw_type = str(data.pop("type", "") or "")
    project = str(data.pop("project", "") or "")

    cls = _METADATA_TYPES.get(raw_type)
    if cls is None:
        return OtherMetadata(kind=raw_type or "other", project=project, extra=data)

    kwargs = {attr: data.pop(key) for attr, key in cls._wire_fields.items() if key in data}
    try:
        return cls(project=project, extra=data, **kwargs)
    except TypeError:
        # a record missing a required field of its variant
        return OtherMetadata(kind=raw_type, project=project, extra={**data, **kwargs})


@dataclass(frozen=True)
class ContextChunk:
    id: str
    text: str
    embedding: list[float]
    metadata: ContextMetadata
    chunk_index: int
    total_chunks: int
    timestamp: str

    def to_record(self) -> VectorRecord:
        return VectorRecord(
            id=self.id,
            values=self.embedding,
            metadata={
                **self.metadata.to_wire(),
                "text": self.text,
                "chunkIndex": self.chunk_index,
                "totalChunks": self.total_chunks,
                "timestamp": self.timestamp,
            },
        )


@dataclass(frozen=True)
class SearchResult:
    id: str
    score: float
    text: str
    metadata: ContextMetadata
    chunk_index: int | None = None
    total_chunks: int | None = None
    timestamp: str | None = None

    @property
    def type(self) -> str:
        return self.metadata.type

    @classmethod
    def from_match(cls, match: QueryMatch) -> "SearchResult":
        raw = match.metadata or {}
        chunk_index = raw.get("chunkIndex")
        total_chunks = raw.get("totalChunks")
        timestamp = raw.get("timestamp")
        return cls(
            id=match.id,
            score=float(match.score),
            text=str(raw.get("text") or ""),
            metadata=metadata_from_wire(raw),
            chunk_index=int(chunk_index) if chunk_index is not None else None,
            total_chunks=int(total_chunks) if total_chunks is not None else None,
            timestamp=str(timestamp) if timestamp is not None else None,
        )


@dataclass(frozen=True)
class SearchFilter:
    project: str | None = None
    types: tuple[str, ...] | None = None

    def to_wire(self) -> dict[str, Any] | None:
        wire: dict[str, Any] = {}
        if self.project:
            wire["project"] = self.project
        if self.types:
            wire["type"] = {"$in": list(self.types)}
        return wire or None

    def cache_key(self) -> str:
        key = self.project or "all"
        if self.types:
            key = f"{key}|{','.join(self.types)}"
        return key


GROUP_KEYS = (
    ContextType.CONVERSATION.value,
    ContextType.CODE.value,
    ContextType.DOCUMENTATION.value,
    "other",
)


@dataclass
class GroupedResults:
    all: list[SearchResult]
    grouped: dict[str, list[SearchResult]]
    context_string: str

    @property
    def conversation(self) -> list[SearchResult]:
        return self.grouped["conversation"]

    @property
    def code(self) -> list[SearchResult]:
        return self.grouped["code"]

    @property
    def documentation(self) -> list[SearchResult]:
        return self.grouped["documentation"]

    @property
    def other(self) -> list[SearchResult]:
        return self.grouped["other"]
