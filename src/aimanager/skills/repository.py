"""Source skill manifests from a GitHub repository (shallow clone to a temp dir)."""

from __future__ import annotations

import subprocess
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from aimanager.core.errors import InternalError, ValidationError
from aimanager.core.utils import to_posix

from .metadata import parse_skill_metadata
from .payload import MANIFEST_NAME

GITHUB_PREFIX = "https://github.com/"
SCAN_DEPTH = 4

Cloner = Callable[[str, Path], None]


@dataclass(frozen=True)
class RepositoryManifest:
    repo_url: str
    manifest_path: str  # posix, relative to the repository root
    manifest: str

    @property
    def reference(self) -> str:
        return f"{self.repo_url} ({self.manifest_path})"


@dataclass(frozen=True)
class SkillCandidate:
    manifest_path: str
    suggested_id: str
    summary: str


def normalize_github_repo_url(value: str) -> str:
    trimmed = value.strip().rstrip("/")
    if not trimmed.startswith(GITHUB_PREFIX):
        raise ValidationError("payload.github_repo_url must start with 'https://github.com/'.")
    segments = [s for s in trimmed[len(GITHUB_PREFIX) :].split("/") if s]
    if len(segments) != 2:
        raise ValidationError(
            "payload.github_repo_url must point to a repository root URL like "
            "'https://github.com/<owner>/<repo>'."
        )
    owner, repo = segments[0], segments[1].removesuffix(".git")
    if not owner or not repo:
        raise ValidationError("payload.github_repo_url must include both owner and repository name.")
    return f"{GITHUB_PREFIX}{owner}/{repo}"


def git_clone(repo_url: str, dest: Path) -> None:
    cmd = ["git", "clone", "--depth", "1", repo_url, str(dest)]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=120)
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        raise InternalError(f"Failed to execute git clone for '{repo_url}': {e}") from e
    if result.returncode != 0:
        raise ValidationError(
            f"Failed to clone GitHub repository '{repo_url}': {result.stderr.strip()}"
        )


def collect_skill_manifests(root: Path, max_depth: int = SCAN_DEPTH) -> list[Path]:
    found: list[Path] = []
    stack: list[tuple[Path, int]] = [(root, 0)]
    while stack:
        directory, depth = stack.pop()
        try:
            entries = list(directory.iterdir())
        except OSError as e:
            raise InternalError(f"Failed to enumerate repository directory '{directory}': {e}") from e
        for entry in entries:
            if entry.is_symlink():
                continue
            if entry.is_file() and entry.name.lower() == MANIFEST_NAME.lower():
                found.append(entry)
            elif entry.is_dir() and entry.name != ".git" and depth < max_depth:
                stack.append((entry, depth + 1))
    return sorted(found, key=lambda p: to_posix(p, root))


def _explicit_manifest_path(repo_root: Path, skill_path: str) -> Path:
    candidate = PurePosixPath(skill_path.strip().lstrip("/"))
    if not candidate.parts:
        raise ValidationError("payload.github_skill_path must not be empty.")
    if ".." in candidate.parts:
        raise ValidationError(
            "payload.github_skill_path must be a relative path within the repository."
        )
    if candidate.name.lower() != MANIFEST_NAME.lower():
        raise ValidationError("payload.github_skill_path must point to a SKILL.md file.")
    return repo_root.joinpath(*candidate.parts)


def select_manifest(repo_root: Path, target_id: str, skill_path: str | None = None) -> Path:
    """Explicit path > ``<id>/SKILL.md`` > root ``SKILL.md`` > the only one in the tree."""
    if skill_path:
        explicit = _explicit_manifest_path(repo_root, skill_path)
        if explicit.is_file():
            return explicit
        raise ValidationError(
            f"payload.github_skill_path '{skill_path}' does not exist in the repository."
        )

    for candidate in (repo_root / target_id / MANIFEST_NAME, repo_root / MANIFEST_NAME):
        if candidate.is_file():
            return candidate

    manifests = collect_skill_manifests(repo_root)
    if not manifests:
        raise ValidationError(f"No SKILL.md file was found in the repository for '{target_id}'.")
    if len(manifests) == 1:
        return manifests[0]
    preview = ", ".join(to_posix(p, repo_root) for p in manifests[:4])
    raise ValidationError(
        f"Multiple SKILL.md files were found in the repository for '{target_id}'. "
        f"Set target_id to match one repository folder. Candidates: {preview}"
    )


def _suggest_id(relative_path: str, repo_url: str) -> str:
    parent = PurePosixPath(relative_path).parent.name
    return parent or repo_url.rsplit("/", 1)[-1]


class GitHubSkillRepository:
    def __init__(self, clone: Cloner = git_clone) -> None:
        self.clone = clone

    def read_manifest(
        self, repo_url: str, target_id: str, skill_path: str | None = None
    ) -> RepositoryManifest:
        url = normalize_github_repo_url(repo_url)
        with tempfile.TemporaryDirectory(prefix="ai-manager-skill-clone-") as tmp:
            repo_root = Path(tmp) / "repo"
            self.clone(url, repo_root)
            manifest_path = select_manifest(repo_root, target_id, skill_path)
            try:
                manifest = manifest_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise InternalError(
                    f"Failed to read skill source manifest '{manifest_path}': {e}"
                ) from e
            return RepositoryManifest(
                repo_url=url,
                manifest_path=to_posix(manifest_path, repo_root),
                manifest=manifest,
            )

    def scan(self, repo_url: str) -> list[SkillCandidate]:
        """List every SKILL.md in the repository with a suggested target id."""
        url = normalize_github_repo_url(repo_url)
        with tempfile.TemporaryDirectory(prefix="ai-manager-skill-clone-") as tmp:
            repo_root = Path(tmp) / "repo"
            self.clone(url, repo_root)
            manifests = collect_skill_manifests(repo_root)
            if not manifests:
                raise ValidationError(f"No SKILL.md file was found in '{url}'.")

            counts: dict[str, int] = {}
            items: list[SkillCandidate] = []
            for path in manifests:
                relative = to_posix(path, repo_root)
                summary = parse_skill_metadata(
                    path.read_text(encoding="utf-8", errors="replace")
                ).description
                base = _suggest_id(relative, url)
                counts[base] = counts.get(base, 0) + 1
                suggested = base if counts[base] == 1 else f"{base}-{counts[base]}"
                items.append(
                    SkillCandidate(
                        manifest_path=relative,
                        suggested_id=suggested,
                        summary=summary or "No description found in SKILL.md.",
                    )
                )
            return items
