"""Skill mutation service: install, replace or remove a skill manifest.

A skill lives either at ``<root>/<id>/SKILL.md`` (directory layout) or at
``<root>/<id>.md`` (file layout). Adds refuse to create a second layout,
updates refuse to pick between two, removes clean up both.
"""

from __future__ import annotations

import errno
import logging
from dataclasses import dataclass
from pathlib import Path

from aimanager.core.config import ClientKind, Config, MutationAction
from aimanager.core.errors import InternalError, ValidationError
from aimanager.core.utils import validate_target_id
from aimanager.mutation import (
    MutationHooks,
    MutationResult,
    SafeFileMutator,
    replace_or_raise,
)

from .metadata import parse_skill_metadata
from .paths import (
    directory_manifest_path,
    file_manifest_path,
    install_kind_of,
    installed_manifests,
    manifest_path_for,
    resolve_skill_root,
)
from .payload import MANIFEST_NAME, SkillInstallKind, SkillMutationPayload, parse_skill_payload
from .repository import GitHubSkillRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManifestSource:
    manifest: str
    install_kind: SkillInstallKind
    reference: str | None = None


class SkillMutationService:
    def __init__(
        self,
        config: Config,
        mutator: SafeFileMutator | None = None,
        repository: GitHubSkillRepository | None = None,
    ) -> None:
        self.config = config
        self.mutator = mutator or SafeFileMutator()
        self.repository = repository or GitHubSkillRepository()

    def mutate(
        self,
        client: ClientKind,
        action: MutationAction,
        target_id: str,
        payload: dict | None = None,
    ) -> MutationResult:
        target_id = validate_target_id(target_id, "skill")
        parsed = parse_skill_payload(action, payload)

        if action is MutationAction.ADD:
            return self.add(client, target_id, parsed)
        if action is MutationAction.REMOVE:
            return self.remove(client, target_id, parsed)
        return self.update(client, target_id, parsed)

    # ── add ─────────────────────────────────────────────────────────

    def add(self, client: ClientKind, target_id: str, payload: SkillMutationPayload) -> MutationResult:
        root = resolve_skill_root(self.config, client, MutationAction.ADD, payload.skills_dir)
        source = self.resolve_manifest_source(target_id, payload)
        _require_metadata(source.manifest)

        kind = payload.install_kind or source.install_kind
        destination = manifest_path_for(root, target_id, kind)

        conflicts = [
            str(p)
            for p in (directory_manifest_path(root, target_id), file_manifest_path(root, target_id))
            if p.exists()
        ]
        if conflicts:
            raise ValidationError(
                f"Skill '{target_id}' already exists. Conflicts: {', '.join(conflicts)}"
            )

        # deepest first, so a rollback can remove them in order
        created_dirs = [p for p in (destination.parent, *destination.parent.parents) if not p.exists()]
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InternalError(
                f"Failed to create skill destination directory '{destination.parent}': {e}"
            ) from e

        try:
            outcome = self._write(destination, source.manifest, payload)
        except InternalError:
            for directory in created_dirs:
                try:
                    _remove_dir_if_empty(directory)
                except InternalError as cleanup_error:
                    logger.warning("%s", cleanup_error.message)
            raise

        message = f"Added skill '{target_id}' for '{client.value}'. Installed at '{destination}'."
        return self._result(destination, message, source, outcome.backup_path)

    # ── remove ──────────────────────────────────────────────────────

    def remove(
        self, client: ClientKind, target_id: str, payload: SkillMutationPayload
    ) -> MutationResult:
        root = resolve_skill_root(self.config, client, MutationAction.REMOVE, payload.skills_dir)
        targets = self._removal_targets(root, target_id, payload.source_path)

        for target in targets:
            try:
                target.unlink()
            except OSError as e:
                raise InternalError(f"Failed to remove skill manifest '{target}': {e}") from e
        for target in targets:
            if target.name == MANIFEST_NAME:
                _remove_dir_if_empty(target.parent)

        message = f"Removed skill '{target_id}' for '{client.value}'."
        if len(targets) > 1:
            message += " Cleaned up stale skill entries."
        message += f" Removed: {', '.join(str(t) for t in targets)}."
        logger.info("removed skill %s: %s", target_id, targets)
        return MutationResult(source_path=targets[0], message=message)

    def _removal_targets(self, root: Path, target_id: str, source_path: str | None) -> list[Path]:
        if source_path:
            path = self.config.expand(source_path)
            manifest = path / MANIFEST_NAME if path.is_dir() else path
            if not manifest.is_file():
                raise ValidationError(f"source_path '{manifest}' does not exist.")
            return [manifest]

        targets = installed_manifests(root, target_id)
        if not targets:
            raise ValidationError(f"Skill '{target_id}' does not exist in '{root}'.")
        return targets

    # ── update ──────────────────────────────────────────────────────

    def update(
        self, client: ClientKind, target_id: str, payload: SkillMutationPayload
    ) -> MutationResult:
        root = resolve_skill_root(self.config, client, MutationAction.UPDATE, payload.skills_dir)
        targets = installed_manifests(root, target_id)
        if not targets:
            raise ValidationError(f"Skill '{target_id}' does not exist in '{root}'.")
        if len(targets) > 1:
            raise ValidationError(
                f"Skill '{target_id}' has multiple installed manifests "
                f"({', '.join(str(t) for t in targets)}). Remove stale entries before updating."
            )
        target = targets[0]

        if payload.install_kind and payload.install_kind is not install_kind_of(target):
            raise ValidationError(
                "payload.install_kind must match the currently installed skill layout "
                f"for update mutations ('{target}')."
            )

        source = self.resolve_manifest_source(target_id, payload)
        _require_metadata(source.manifest)

        outcome = self._write(target, source.manifest, payload)
        message = f"Updated skill '{target_id}' for '{client.value}'. Installed at '{target}'."
        return self._result(target, message, source, outcome.backup_path)

    # ── manifest sources ────────────────────────────────────────────

    def resolve_manifest_source(self, target_id: str, payload: SkillMutationPayload) -> ManifestSource:
        if payload.source_path:
            return self._manifest_from_path(payload)

        if payload.github_repo_url:
            fetched = self.repository.read_manifest(
                payload.github_repo_url, target_id, payload.github_skill_path
            )
            if payload.install_kind is SkillInstallKind.FILE:
                raise ValidationError(
                    "payload.install_kind is incompatible with payload.github_repo_url "
                    "(repository skills install as directories)."
                )
            return ManifestSource(
                manifest=fetched.manifest,
                install_kind=SkillInstallKind.DIRECTORY,
                reference=fetched.reference,
            )

        if payload.manifest is None:
            raise ValidationError(
                "payload.manifest, payload.source_path, or payload.github_repo_url is required "
                "for skill add/update mutation."
            )
        return ManifestSource(
            manifest=payload.manifest,
            install_kind=payload.install_kind or SkillInstallKind.DIRECTORY,
        )

    def _manifest_from_path(self, payload: SkillMutationPayload) -> ManifestSource:
        path = self.config.expand(payload.source_path)
        if path.is_dir():
            manifest_path = path / MANIFEST_NAME
            if not manifest_path.is_file():
                raise ValidationError(
                    f"source_path '{path}' must contain SKILL.md when using directory install."
                )
            inferred = SkillInstallKind.DIRECTORY
        elif path.is_file():
            if path.suffix.lower() != ".md":
                raise ValidationError(f"source_path '{path}' must point to a markdown file.")
            manifest_path = path
            inferred = SkillInstallKind.FILE
        else:
            raise ValidationError(f"source_path '{path}' does not exist.")

        if payload.install_kind and payload.install_kind is not inferred:
            raise ValidationError(
                f"payload.install_kind is incompatible with payload.source_path shape ('{path}')."
            )

        try:
            manifest = manifest_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InternalError(f"Failed to read skill source manifest '{manifest_path}': {e}") from e
        return ManifestSource(manifest=manifest, install_kind=inferred, reference=str(manifest_path))

    # ── helpers ─────────────────────────────────────────────────────

    def _write(self, target: Path, manifest: str, payload: SkillMutationPayload):
        hooks = MutationHooks(fail_after_write=True) if payload.fail_after_write else None
        outcome = replace_or_raise(self.mutator, target, manifest.encode("utf-8"), hooks)
        logger.info("wrote skill manifest %s", target)
        return outcome

    def _result(
        self, target: Path, message: str, source: ManifestSource, backup_path: Path | None
    ) -> MutationResult:
        if source.reference:
            message += f" Source: {source.reference}."
        if backup_path is not None:
            message += f" Backup: {backup_path}."
        return MutationResult(source_path=target, message=message, backup_path=backup_path)


def _require_metadata(manifest: str) -> None:
    if parse_skill_metadata(manifest).description is None:
        raise ValidationError(
            "Skill manifest metadata is incompatible: include at least one heading or "
            "description line."
        )


def _remove_dir_if_empty(directory: Path) -> None:
    try:
        directory.rmdir()
    except FileNotFoundError:
        pass
    except OSError as e:
        if e.errno in (errno.ENOTEMPTY, errno.EEXIST):
            return
        raise InternalError(f"Failed to clean up empty skill directory '{directory}': {e}") from e


def mutate_skill(
    config: Config,
    client: ClientKind,
    action: MutationAction,
    target_id: str,
    payload: dict | None = None,
) -> MutationResult:
    return SkillMutationService(config).mutate(client, action, target_id, payload)
