"""Skills: manifest sources, install layouts, mutation and listing."""

from .listing import SkillListResult, SkillRecord, list_skills, scan_skills_dir
from .metadata import SkillMetadata, parse_skill_metadata
from .paths import installed_manifests, resolve_skill_root
from .payload import SkillInstallKind, SkillMutationPayload, parse_skill_payload
from .repository import GitHubSkillRepository, normalize_github_repo_url
from .service import SkillMutationService, mutate_skill

__all__ = [
    "GitHubSkillRepository",
    "SkillInstallKind",
    "SkillListResult",
    "SkillMetadata",
    "SkillMutationPayload",
    "SkillMutationService",
    "SkillRecord",
    "installed_manifests",
    "list_skills",
    "mutate_skill",
    "normalize_github_repo_url",
    "parse_skill_metadata",
    "parse_skill_payload",
    "resolve_skill_root",
    "scan_skills_dir",
]
