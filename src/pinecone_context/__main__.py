import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import NoReturn

import structlog
import yaml  # type: ignore[import-untyped]

from pinecone_context.config import (
    ContextConfig,
    LoggingConfig,
    load_raw_config,
    parse_context_config,
    parse_logging_config,
)
from pinecone_context.context.types import (
    DEFAULT_PROJECT,
    ContextMetadata,
    DecisionMetadata,
    TextMetadata,
)
from pinecone_context.deployment import DeploymentRecorder, GitInfo, get_git_info
from pinecone_context.service import ContextService
from pinecone_context.util.logging import configure_logging

_logger = structlog.get_logger()

_DEFAULT_EXTENSIONS = "js,ts,py,md"
_SKIPPED_DIRS = frozenset({"node_modules", ".git", "dist", "build", "__pycache__"})
_PREVIEW_CHARS = 500
_TEST_EMBEDDING_TEXT = "This is a test embedding for Pinecone context storage."

Flags = dict[str, str | bool]

_USAGE = """Usage: python -m pinecone_context <command> [options]

Commands:
  index --file <path> [--project <name>] [--type code|doc]
  index --text "content" [--project <name>] [--type text|decision]
  index --dir <path> [--project <name>] [--ext js,ts,py,md]
  search --query "your search" [--project <name>] [--top 5] [--verbose]
  setup                         Create the index if it does not exist
  stats                         Check index and embedding connectivity
  delete --project <name> [--type <type>]
  deploy-sync --auto [--path <repo>] [--status success|failed] [--project <name>]
  deploy-sync --repo <name> --commit <hash> --message "msg" [--author A]
              [--branch B] [--files a,b] [--stats S] [--status S] [--project <name>]
  serve                         Run the MCP server on stdio"""

_COMMANDS = ("index", "search", "setup", "stats", "delete", "deploy-sync", "serve")


def _parse_flags(args: list[str]) -> Flags:
    """Parse ``--key value`` pairs; a key without a value becomes ``True``."""
    flags: Flags = {}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg.startswith("--"):
            key = arg[2:]
            if i + 1 < len(args) and not args[i + 1].startswith("--"):
                flags[key] = args[i + 1]
                i += 2
                continue
            flags[key] = True
        i += 1
    return flags


def _flag(flags: Flags, key: str) -> str | None:
    value = flags.get(key)
    return value if isinstance(value, str) and value else None


def _int_flag(flags: Flags, key: str, default: int) -> int:
    try:
        return int(_flag(flags, key) or default)
    except ValueError:
        return default


def _missing_arguments(command: str, flags: Flags) -> str | None:
    match command:
        case "index":
            if not any(_flag(flags, key) for key in ("file", "text", "dir")):
                return "index requires --file, --text or --dir"
        case "search":
            if not _flag(flags, "query"):
                return "search requires --query"
        case "delete":
            if not (_flag(flags, "project") or _flag(flags, "type")):
                return "delete requires --project or --type"
        case "deploy-sync":
            manual = all(_flag(flags, key) for key in ("repo", "commit", "message"))
            if not flags.get("auto") and not manual:
                return "deploy-sync requires --auto or --repo, --commit and --message"
    return None


def _text_metadata(context_type: str, project: str) -> ContextMetadata:
    match context_type:
        case "text":
            return TextMetadata(project=project)
        case "decision":
            return DecisionMetadata(project=project)
        case _:
            raise ValueError(f"Unsupported --type for --text: {context_type}")


def _collect_files(root: Path, extensions: list[str]) -> list[Path]:
    files: list[Path] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix not in extensions:
            continue
        if any(part in _SKIPPED_DIRS for part in path.relative_to(root).parts[:-1]):
            continue
        files.append(path)
    return files


async def _index(service: ContextService, flags: Flags) -> None:
    project = _flag(flags, "project") or DEFAULT_PROJECT
    context_type = _flag(flags, "type")

    if file_arg := _flag(flags, "file"):
        file_path = Path(file_arg).resolve()
        content = file_path.read_text(encoding="utf-8")
        if context_type == "doc":
            await service.store.store_documentation(file_path.name, content, project)
        else:
            await service.store.store_code_file(str(file_path), content, project)
        print(f"Indexed: {file_path}")

    if text := _flag(flags, "text"):
        ids = await service.store.store(text, _text_metadata(context_type or "text", project))
        print(f"Indexed text content ({len(ids)} chunk(s))")

    if dir_arg := _flag(flags, "dir"):
        dir_path = Path(dir_arg).resolve()
        raw_extensions = _flag(flags, "ext") or _DEFAULT_EXTENSIONS
        extensions = [f".{ext.strip().lstrip('.')}" for ext in raw_extensions.split(",") if ext.strip()]

        files = _collect_files(dir_path, extensions)
        print(f"Found {len(files)} files to index")

        for file_path in files:
            content = file_path.read_text(encoding="utf-8", errors="replace")
            await service.store.store_code_file(str(file_path), content, project)
            print(f"Indexed: {file_path}")

    print("\n=== Indexing Complete ===")


async def _search(service: ContextService, flags: Flags) -> None:
    query = _flag(flags, "query") or ""
    project = _flag(flags, "project")
    top_k = _int_flag(flags, "top", service.config.search.top_k)

    print(f'\nSearching for: "{query}"')
    if project:
        print(f"Project filter: {project}")
    print(f"Top K: {top_k}\n")

    results = await service.searcher.get_relevant_context(query, project=project, top_k=top_k)

    print(f"Found {len(results.all)} results:\n")
    for i, result in enumerate(results.all, 1):
        wire = result.metadata.to_wire()
        print(f"--- Result {i} (score: {result.score:.4f}) ---")
        print(f"Type: {result.type or 'unknown'}")
        if file_path := wire.get("filePath"):
            print(f"File: {file_path}")
        if title := wire.get("title"):
            print(f"Title: {title}")
        preview = result.text[:_PREVIEW_CHARS]
        ellipsis = "..." if len(result.text) > _PREVIEW_CHARS else ""
        print(f"\n{preview}{ellipsis}\n")

    if flags.get("verbose"):
        print("\n=== Context String for LLM ===\n")
        print(results.context_string)


async def _setup(service: ContextService) -> None:
    created = await service.setup_index()
    name = service.config.index.index_name
    print(f"Index {name} {'created' if created else 'already exists'}")

    stats = await service.stats()
    print("\nIndex Stats:")
    print(json.dumps(asdict(stats), indent=2))


async def _stats(service: ContextService) -> None:
    stats = await service.stats()
    print(f'Index "{service.config.index.index_name}" has {stats.total_vector_count} vectors')
    print(f"Dimensions: {stats.dimension}")

    embedding = await service.embedder.embed(_TEST_EMBEDDING_TEXT)
    print(f"Generated embedding with {len(embedding)} dimensions")


async def _delete(service: ContextService, flags: Flags) -> None:
    context_type = _flag(flags, "type")
    applied = await service.delete_context(
        project=_flag(flags, "project"),
        types=[context_type] if context_type else None,
    )
    print(f"Deleted context matching filter: {json.dumps(applied)}")


async def _git_info_from_flags(flags: Flags) -> GitInfo:
    if flags.get("auto"):
        return await asyncio.to_thread(get_git_info, _flag(flags, "path") or ".")

    commit = _flag(flags, "commit") or ""
    files = _flag(flags, "files")
    return GitInfo(
        commit=commit[:7],
        full_commit=commit,
        message=_flag(flags, "message") or "",
        author=_flag(flags, "author") or "Unknown",
        branch=_flag(flags, "branch") or "master",
        timestamp="",
        repo_name=_flag(flags, "repo") or "unknown",
        changed_files=[f.strip() for f in files.split(",") if f.strip()] if files else [],
        diff_stats=_flag(flags, "stats") or "",
    )


async def _deploy_sync(service: ContextService, flags: Flags) -> None:
    git_info = await _git_info_from_flags(flags)
    status = _flag(flags, "status") or "success"
    recorder = DeploymentRecorder(service.store, project=_flag(flags, "project") or DEFAULT_PROJECT)

    print(f"Repository: {git_info.repo_name}")
    print(f"Commit: {git_info.commit}")
    print(f"Branch: {git_info.branch}")
    print(f"Message: {git_info.message.splitlines()[0] if git_info.message else ''}")
    print(f"Status: {status}")
    print(f"Files changed: {len(git_info.changed_files)}\n")

    vectors = await recorder.sync(git_info, status)
    print(f"Created {vectors} vector(s)")


async def _run(command: str, flags: Flags, config: ContextConfig) -> None:
    async with ContextService.from_config(config) as service:
        match command:
            case "index":
                await _index(service, flags)
            case "search":
                await _search(service, flags)
            case "setup":
                await _setup(service)
            case "stats":
                await _stats(service)
            case "delete":
                await _delete(service, flags)
            case "deploy-sync":
                await _deploy_sync(service, flags)
            case "serve":
                from pinecone_context.tool.server import serve

                await serve(service)


def _init_logging(logging_config: LoggingConfig) -> None:
    configure_logging(
        json_output=logging_config.json_output,
        log_level=logging_config.log_level,
        stream=sys.stderr,
    )


def _config_error(exc: Exception) -> NoReturn:
    print(f"Configuration error: {exc}", file=sys.stderr)
    print("Set OPENAI_API_KEY and PINECONE_API_KEY or edit config/context.yaml", file=sys.stderr)
    sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv

    if not args or args[0] not in _COMMANDS:
        print(_USAGE)
        sys.exit(1)

    command, flags = args[0], _parse_flags(args[1:])
    if problem := _missing_arguments(command, flags):
        print(problem)
        print(_USAGE)
        sys.exit(1)

    try:
        raw_config = load_raw_config()
    except yaml.YAMLError as exc:
        _config_error(exc)

    _init_logging(parse_logging_config(raw_config))

    try:
        config = parse_context_config(raw_config)
    except ValueError as exc:
        _config_error(exc)

    try:
        asyncio.run(_run(command, flags, config))
    except Exception as exc:
        _logger.debug("command_failed", command=command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
