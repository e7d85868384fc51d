"""Skill layout paths and skills-root resolution."""

from __future__ import annotations

from pathlib import Path

from aimanager.core.config import ClientKind, Config, MutationAction
from aimanager.core.errors import ValidationError

from .payload import MANIFEST_NAME, SkillInstallKind


def directory_manifest_path(root: Path, target_id: str) -> Path:
    return root / target_id / MANIFEST_NAME


def file_manifest_path(root: Path, target_id: str) -> Path:
    return root / f"{target_id}.md"


def manifest_path_for(root: Path, target_id: str, kind: SkillInstallKind) -> Path:
    if kind is SkillInstallKind.DIRECTORY:
        return directory_manifest_path(root, target_id)
    return file_manifest_path(root, target_id)


def install_kind_of(manifest_path: Path) -> SkillInstallKind:
    if manifest_path.name == MANIFEST_NAME:
        return SkillInstallKind.DIRECTORY
    return SkillInstallKind.FILE


def installed_manifests(root: Path, target_id: str) -> list[Path]:
    """Every layout currently installed for *target_id*, sorted by path."""
    found = [
        p
        for p in (directory_manifest_path(root, target_id), file_manifest_path(root, target_id))
        if p.is_file()
    ]
    return sorted(found, key=str)


def resolve_skill_root(
    config: Config,
    client: ClientKind,
    action: MutationAction,
    skills_dir: str | None = None,
) -> Path:
    """Explicit ``skills_dir`` > discovered directory > preferred default (add only)."""
    if skills_dir:
        path = config.expand(skills_dir)
        if action is not MutationAction.ADD and not path.is_dir():
            raise ValidationError(
                f"skills_dir '{path}' does not exist for skill remove/update mutation."
            )
        return path

    resolution = config.discovery.skills_dir(client)
    if resolution.path is not None:
        return Path(resolution.path)

    if action is MutationAction.ADD:
        return config.preferred_skills_dir(client)

    message = f"Could not resolve skills directory for '{client.value}'."
    if resolution.warnings:
        message += " " + " | ".join(resolution.warnings)
    raise ValidationError(message)
