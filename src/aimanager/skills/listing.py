"""List installed skills for a client (both layouts)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from aimanager.core.config import ClientKind, Config

from .metadata import parse_skill_metadata
from .payload import MANIFEST_NAME, SkillInstallKind


@dataclass
class SkillRecord:
    id: str
    client: ClientKind
    name: str
    description: str
    install_kind: SkillInstallKind
    path: Path


@dataclass
class SkillListResult:
    items: list[SkillRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _manifest_candidate(path: Path) -> tuple[str, Path, SkillInstallKind] | None:
    if path.is_dir():
        manifest = path / MANIFEST_NAME
        if manifest.is_file():
            return path.name, manifest, SkillInstallKind.DIRECTORY
        return None
    if path.is_file() and path.suffix.lower() == ".md" and not path.name.startswith("."):
        return path.stem, path, SkillInstallKind.FILE
    return None


def scan_skills_dir(client: ClientKind, root: Path) -> SkillListResult:
    result = SkillListResult()
    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        result.warnings.append(f"[{client.value}:SKILLS_DIR_READ_ERROR] failed to read '{root}': {e}")
        return result

    for entry in entries:
        candidate = _manifest_candidate(entry)
        if candidate is None:
            continue
        name, manifest, kind = candidate
        try:
            text = manifest.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.warnings.append(
                f"[{client.value}:SKILL_READ_ERROR] failed to read '{manifest}': {e}"
            )
            continue
        meta = parse_skill_metadata(text)
        result.items.append(
            SkillRecord(
                id=f"{client.value}::skill::{name}",
                client=client,
                name=name,
                description=meta.description or "",
                install_kind=kind,
                path=manifest,
            )
        )
    return result


def list_skills(config: Config, client: ClientKind, skills_dir: str | None = None) -> SkillListResult:
    if skills_dir:
        return scan_skills_dir(client, config.expand(skills_dir))

    resolution = config.discovery.skills_dir(client)
    if resolution.path is None:
        return SkillListResult(warnings=list(resolution.warnings))
    result = scan_skills_dir(client, Path(resolution.path))
    result.warnings[:0] = resolution.warnings
    return result
