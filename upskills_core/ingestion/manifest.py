"""
SKILL.md manifest parser.

Extracts the YAML frontmatter block and validates the ``name`` and
``description`` fields. Pure and deterministic.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from ..config import ManifestConfig, get_config
from ..constants import FRONTMATTER_DELIMITER
from ..exceptions import ManifestError

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class ManifestConstraints:
    max_name_length: int
    max_description_length: int

    @classmethod
    def from_config(cls, config: ManifestConfig) -> "ManifestConstraints":
        return cls(
            max_name_length=config.max_name_length,
            max_description_length=config.max_description_length,
        )


@dataclass(frozen=True)
class SkillManifest:
    """Validated frontmatter: the two required fields plus the whole parsed mapping."""

    name: str
    description: str
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


def _frontmatter_lines(lines: List[str]) -> List[str]:
    if not lines or lines[0] != FRONTMATTER_DELIMITER:
        raise ManifestError("missing_frontmatter", "missing YAML frontmatter")

    for end_idx in range(1, len(lines)):
        if lines[end_idx] == FRONTMATTER_DELIMITER:
            return lines[1:end_idx]
    raise ManifestError("unterminated_frontmatter", "unterminated YAML frontmatter")


def _required_text(frontmatter: Dict[str, Any], key: str, kind: str) -> str:
    value = frontmatter.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ManifestError(kind, f"frontmatter.{key} must be a non-empty string")
    return value


def parse_skill_manifest(
    content: Any, constraints: Optional[ManifestConstraints] = None
) -> SkillManifest:
    """
    Parse and validate a SKILL.md document.

    The first line must be exactly ``---`` and the block ends at the next line
    that is exactly ``---``. Values are returned as written (not trimmed).

    Raises:
        ManifestError: with kind ``invalid_content``, ``missing_frontmatter``,
            ``unterminated_frontmatter``, ``invalid_yaml``,
            ``invalid_frontmatter``, ``missing_name``, ``missing_description``,
            ``name_too_long`` or ``description_too_long``
    """
    if constraints is None:
        constraints = ManifestConstraints.from_config(get_config().manifest)

    if not isinstance(content, str) or not content:
        raise ManifestError("invalid_content", "content must be a non-empty string")

    yaml_text = "\n".join(_frontmatter_lines(_LINE_BREAK.split(content)))
    try:
        frontmatter = yaml.safe_load(yaml_text)
    except yaml.YAMLError as e:
        raise ManifestError("invalid_yaml", "invalid YAML frontmatter", cause=e) from e

    if not isinstance(frontmatter, dict):
        raise ManifestError("invalid_frontmatter", "frontmatter must be a YAML object")

    name = _required_text(frontmatter, "name", "missing_name")
    description = _required_text(frontmatter, "description", "missing_description")

    if len(name) > constraints.max_name_length:
        raise ManifestError(
            "name_too_long", f"name must be <= {constraints.max_name_length} chars"
        )
    if len(description) > constraints.max_description_length:
        raise ManifestError(
            "description_too_long",
            f"description must be <= {constraints.max_description_length} chars",
        )

    return SkillManifest(name=name, description=description, raw=frontmatter)
