import subprocess
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import structlog

from pinecone_context.context.store import ContextStore
from pinecone_context.context.types import DecisionMetadata, DeploymentMetadata

_logger = structlog.get_logger()

_MAX_LISTED_FILES = 10
_MAX_KEY_FILES = 5
_IGNORED_FILE_MARKERS = ("node_modules", ".lock")


@dataclass
class GitInfo:
    commit: str
    full_commit: str
    message: str
    author: str
    branch: str
    timestamp: str
    repo_name: str
    changed_files: list[str] = field(default_factory=list)
    diff_stats: str = ""


@dataclass
class CommitAnalysis:
    deployment_type: str
    priority: str


def _git(repo_path: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def get_git_info(repo_path: Path | str = ".") -> GitInfo:
    """Read the HEAD commit of a local repository.

    Raises ``subprocess.CalledProcessError`` when *repo_path* is not a git
    repository or has no commits.
    """
    cwd = Path(repo_path).resolve()

    try:
        remote = _git(cwd, "remote", "get-url", "origin")
        repo_name = remote.rstrip("/").split("/")[-1].removesuffix(".git") or "unknown"
    except subprocess.CalledProcessError:
        repo_name = cwd.name or "unknown"

    changed = _git(cwd, "diff-tree", "--no-commit-id", "--name-only", "-r", "HEAD")

    return GitInfo(
        commit=_git(cwd, "rev-parse", "--short", "HEAD"),
        full_commit=_git(cwd, "rev-parse", "HEAD"),
        message=_git(cwd, "log", "-1", "--pretty=%B"),
        author=_git(cwd, "log", "-1", "--pretty=%an"),
        branch=_git(cwd, "rev-parse", "--abbrev-ref", "HEAD"),
        timestamp=_git(cwd, "log", "-1", "--pretty=%ci"),
        repo_name=repo_name,
        changed_files=[line for line in changed.splitlines() if line],
        diff_stats=_git(cwd, "diff-tree", "--no-commit-id", "--stat", "-r", "HEAD"),
    )


def analyze_commit(message: str) -> CommitAnalysis:
    """Classify a commit by its conventional-commit prefix or keywords."""
    msg = message.lower()

    if msg.startswith("feat:") or "add " in msg or "implement" in msg:
        return CommitAnalysis("feature", "high")
    if msg.startswith("fix:") or "bug" in msg or "patch" in msg:
        return CommitAnalysis("bugfix", "high")
    if msg.startswith("perf:") or "performance" in msg or "optimize" in msg:
        return CommitAnalysis("performance", "medium")
    if msg.startswith("refactor:") or "refactor" in msg:
        return CommitAnalysis("refactor", "low")
    if msg.startswith("docs:") or "documentation" in msg:
        return CommitAnalysis("documentation", "low")
    if msg.startswith("chore:") or "deps" in msg or "dependencies" in msg:
        return CommitAnalysis("maintenance", "low")

    return CommitAnalysis("general", "medium")


def _today() -> str:
    return datetime.now(UTC).date().isoformat()


def build_deployment_context(
    git_info: GitInfo,
    status: str = "success",
    date: str | None = None,
) -> str:
    analysis = analyze_commit(git_info.message)
    date = date or _today()

    significant = [
        path
        for path in git_info.changed_files
        if not any(marker in path for marker in _IGNORED_FILE_MARKERS)
    ]
    key_changes = "\n".join(f"- {path}" for path in significant[:_MAX_LISTED_FILES])
    outcome = "completed successfully" if status == "success" else "had issues"

    return (
        f"DEPLOYMENT: {git_info.repo_name} - {date}\n"
        f"\n"
        f"COMMIT: {git_info.commit} ({git_info.branch})\n"
        f"TYPE: {analysis.deployment_type}\n"
        f"PRIORITY: {analysis.priority}\n"
        f"STATUS: {status}\n"
        f"\n"
        f"MESSAGE:\n{git_info.message}\n"
        f"\n"
        f"KEY FILES CHANGED:\n{key_changes or '- No significant file changes'}\n"
        f"\n"
        f"STATS:\n{git_info.diff_stats}\n"
        f"\n"
        f"This deployment {outcome} on {date}."
    )


def build_decision_context(git_info: GitInfo, date: str | None = None) -> str:
    date = date or _today()
    key_files = ", ".join(git_info.changed_files[:_MAX_KEY_FILES])
    return (
        f"{git_info.repo_name.upper()} UPDATE - {date}\n"
        f"\n"
        f"COMMIT: {git_info.commit}\n"
        f"\n"
        f"{git_info.message}\n"
        f"\n"
        f"Files changed: {len(git_info.changed_files)}\n"
        f"Key changes: {key_files}\n"
        f"\n"
        f"This change was deployed to production."
    )


def is_significant(git_info: GitInfo) -> bool:
    analysis = analyze_commit(git_info.message)
    return analysis.priority == "high" or len(git_info.changed_files) >= 3


class DeploymentRecorder:
    """Stores deployment records, plus a decision record for significant changes."""

    def __init__(self, store: ContextStore, project: str) -> None:
        self._store = store
        self._project = project

    async def store_deployment(self, git_info: GitInfo, status: str = "success") -> list[str]:
        analysis = analyze_commit(git_info.message)
        metadata = DeploymentMetadata(
            project=self._project,
            repo=git_info.repo_name,
            commit=git_info.commit,
            full_commit=git_info.full_commit,
            branch=git_info.branch,
            author=git_info.author,
            deployment_type=analysis.deployment_type,
            priority=analysis.priority,
            status=status,
            changed_files_count=len(git_info.changed_files),
            key_files=", ".join(git_info.changed_files[:_MAX_KEY_FILES]),
        )
        return await self._store.store(build_deployment_context(git_info, status), metadata)

    async def store_decision(self, git_info: GitInfo) -> list[str] | None:
        if not is_significant(git_info):
            _logger.debug("decision_skipped", repo=git_info.repo_name, commit=git_info.commit)
            return None

        metadata = DecisionMetadata(
            project=self._project,
            title=f"{git_info.repo_name} Deployed",
            repo=git_info.repo_name,
            commit=git_info.commit,
        )
        return await self._store.store(build_decision_context(git_info), metadata)

    async def sync(self, git_info: GitInfo, status: str = "success") -> int:
        """Store both records and return the number of vectors written."""
        deployment_ids = await self.store_deployment(git_info, status)
        decision_ids = await self.store_decision(git_info)
        vectors = len(deployment_ids) + len(decision_ids or [])
        _logger.info(
            "deployment_synced",
            repo=git_info.repo_name,
            commit=git_info.commit,
            status=status,
            vectors=vectors,
        )
        return vectors
