"""Pull a human-readable description out of a skill manifest."""

from __future__ import annotations

from dataclasses import dataclass

from aimanager.core.utils import split_frontmatter


@dataclass(frozen=True)
class SkillMetadata:
    description: str | None = None
    name: str | None = None


def parse_skill_metadata(source: str) -> SkillMetadata:
    """First non-blank, non-heading line; else the first heading.

    A leading ``---`` frontmatter block is skipped, and its ``description``
    field wins when present.
    """
    meta, body = split_frontmatter(source)
    meta = meta or {}
    name = meta.get("name") or None
    if meta.get("description"):
        return SkillMetadata(description=meta["description"], name=name)

    first_heading: str | None = None
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith("#"):
            heading = line.lstrip("#").strip()
            if first_heading is None and heading:
                first_heading = heading
            continue
        return SkillMetadata(description=line, name=name)

    return SkillMetadata(description=first_heading, name=name)
