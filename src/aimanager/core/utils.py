"""Path helpers, target id validation, frontmatter parsing."""

from __future__ import annotations

from pathlib import Path

from .errors import ValidationError


def parse_frontmatter(raw: str) -> dict:
    meta: dict = {}
    for line in raw.split("\n"):
        line = line.strip()
        if ":" in line:
            key, val = line.split(":", 1)
            meta[key.strip()] = val.strip().strip("'\"")
    return meta


def split_frontmatter(content: str) -> tuple[dict | None, str]:
    """Return ``(meta, body)``; ``meta`` is None when there is no closed ``---`` block."""
    if not content.startswith("---"):
        return None, content
    end = content.find("\n---", 3)
    if end == -1:
        return None, content
    frontmatter = content[3:end].strip()
    body = content[end + 4 :]
    return parse_frontmatter(frontmatter), body


def validate_target_id(target_id: str, resource: str = "skill") -> str:
    """Reject empty ids and ids that do not name a single child of the parent directory."""
    target_id = target_id.strip()
    if not target_id:
        raise ValidationError(f"target_id must not be empty for {resource} mutation.")
    # "." has an empty Path.name and would resolve to the parent itself
    if (
        "/" in target_id
        or "\\" in target_id
        or ".." in target_id
        or Path(target_id).name != target_id
    ):
        raise ValidationError(
            f"target_id '{target_id}' must not contain path separators or traversal "
            f"segments for {resource} mutation."
        )
    return target_id


def to_posix(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)
