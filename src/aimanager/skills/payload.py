"""Parse an untyped skill mutation payload."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from aimanager.core.config import MutationAction
from aimanager.core.errors import ValidationError

MANIFEST_NAME = "SKILL.md"


class SkillInstallKind(str, Enum):
    DIRECTORY = "directory"
    FILE = "file"


@dataclass(frozen=True)
class SkillMutationPayload:
    source_path: str | None = None
    github_repo_url: str | None = None
    github_skill_path: str | None = None
    skills_dir: str | None = None
    manifest: str | None = None
    install_kind: SkillInstallKind | None = None
    fail_after_write: bool = False


def _trimmed(data: dict, key: str) -> str | None:
    value = data.get(key)
    if not isinstance(value, str):
        return None
    return value.strip() or None


def parse_install_kind(value: str) -> SkillInstallKind:
    try:
        return SkillInstallKind(value.strip().lower())
    except ValueError:
        raise ValidationError(
            "payload.install_kind must be either 'directory' or 'file'."
        ) from None


def parse_skill_payload(action: MutationAction, payload: dict | None) -> SkillMutationPayload:
    if payload is None:
        if action is MutationAction.REMOVE:
            return SkillMutationPayload()
        raise ValidationError("payload is required for skill add/update mutation.")
    if not isinstance(payload, dict):
        raise ValidationError("payload must be an object.")

    source_path = _trimmed(payload, "source_path")
    github_repo_url = _trimmed(payload, "github_repo_url")
    github_skill_path = _trimmed(payload, "github_skill_path")
    manifest = payload.get("manifest")
    if not isinstance(manifest, str) or not manifest.strip():
        manifest = None

    raw_kind = _trimmed(payload, "install_kind")
    install_kind = parse_install_kind(raw_kind) if raw_kind else None

    sources = [s for s in (source_path, github_repo_url, manifest) if s is not None]
    if len(sources) > 1:
        raise ValidationError(
            "payload.source_path, payload.github_repo_url, and payload.manifest are mutually exclusive."
        )
    if github_skill_path and not github_repo_url:
        raise ValidationError("payload.github_skill_path requires payload.github_repo_url.")
    if action is not MutationAction.REMOVE and not sources:
        raise ValidationError(
            "payload.manifest, payload.source_path, or payload.github_repo_url is required "
            "for skill add/update mutation."
        )

    return SkillMutationPayload(
        source_path=source_path,
        github_repo_url=github_repo_url,
        github_skill_path=github_skill_path,
        skills_dir=_trimmed(payload, "skills_dir"),
        manifest=manifest,
        install_kind=install_kind,
        fail_after_write=payload.get("fail_after_write") is True,
    )
