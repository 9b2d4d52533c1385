from collections.abc import Sequence

from pinecone_context.context.types import (
    GROUP_KEYS,
    CodeMetadata,
    ConversationMetadata,
    DocumentationMetadata,
    GroupedResults,
    SearchResult,
)

SECTION_SEPARATOR = "\n\n---\n\n"


def format_context(results: Sequence[SearchResult]) -> str:
    """Render results as prompt-ready sections, one header per result."""
    if not results:
        return ""

    sections = [f"{_header(result)}\n{result.text}" for result in results]
    return SECTION_SEPARATOR.join(sections)


def group_results(results: Sequence[SearchResult]) -> GroupedResults:
    grouped: dict[str, list[SearchResult]] = {key: [] for key in GROUP_KEYS}

    for result in results:
        key = result.type if result.type in grouped else "other"
        grouped[key].append(result)

    return GroupedResults(
        all=list(results),
        grouped=grouped,
        context_string=format_context(results),
    )


def _header(result: SearchResult) -> str:
    match result.metadata:
        case CodeMetadata(file_path=file_path):
            return f"[Code: {file_path}]"
        case ConversationMetadata(role=role):
            return f"[{role}]"
        case DocumentationMetadata(title=title):
            return f"[Doc: {title}]"
        case _:
            return "[Context]"
