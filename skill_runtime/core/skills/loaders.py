"""Filesystem loaders for progressive skills.

Each skill lives in its own directory under a skills root:

```
skills/
  coding/
    SKILL.md            # YAML frontmatter (Level 1 + Level 2 fields) + markdown system prompt
    requirements.txt    # Level 3 dependency packages, one per line
    scripts/            # Level 3 scripts (text)
    templates/          # Level 3 templates (text)
    config/             # Level 3 config files (text)
    data/               # Level 3 data files (binary)
```

``discover_skills`` reads only Level 1 fields at startup; the loaders read the rest
when the skill asks for it.
"""

import asyncio
import os
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Tuple,
)

import yaml
from pydantic import ValidationError

from skill_runtime.core.config import settings
from skill_runtime.core.logging import logger
from skill_runtime.core.skills.progressive import ProgressiveSkill
from skill_runtime.core.skills.schema import (
    ParameterDef,
    SkillCategory,
    SkillDefinition,
    SkillExample,
    SkillInstructions,
    SkillMetadata,
    SkillParameters,
    SkillResources,
)

SKILL_FILENAME = "SKILL.md"
REQUIREMENTS_FILENAME = "requirements.txt"


def parse_skill_file(filepath: str) -> Tuple[Dict[str, Any], str]:
    """Parse a skill markdown file into its frontmatter and body.

    Expected format:
    ---
    id: skill_id
    name: Skill Name
    description: Brief description
    tags: tag1, tag2
    ---
    Full system prompt here...

    Args:
        filepath: Path to the skill markdown file.

    Returns:
        Tuple[Dict[str, Any], str]: The frontmatter mapping and the stripped body.

    Raises:
        ValueError: If the file has no valid frontmatter block.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        content = f.read()

    if not content.startswith("---"):
        raise ValueError(f"skill file missing frontmatter: {filepath}")

    parts = content.split("---", 2)
    if len(parts) < 3:
        raise ValueError(f"skill file has invalid frontmatter: {filepath}")

    frontmatter = yaml.safe_load(parts[1]) or {}
    if not isinstance(frontmatter, dict):
        raise ValueError(f"skill frontmatter is not a mapping: {filepath}")

    return frontmatter, parts[2].strip()


def _as_list(value: Any) -> List[str]:
    """Accept either a YAML list or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


def _read_text_files(directory: str) -> Dict[str, str]:
    files: Dict[str, str] = {}
    if not os.path.isdir(directory):
        return files
    for filename in sorted(os.listdir(directory)):
        filepath = os.path.join(directory, filename)
        if os.path.isfile(filepath):
            with open(filepath, "r", encoding="utf-8") as f:
                files[filename] = f.read()
    return files


def _read_binary_files(directory: str) -> Dict[str, bytes]:
    files: Dict[str, bytes] = {}
    if not os.path.isdir(directory):
        return files
    for filename in sorted(os.listdir(directory)):
        filepath = os.path.join(directory, filename)
        if os.path.isfile(filepath):
            with open(filepath, "rb") as f:
                files[filename] = f.read()
    return files


class MarkdownInstructionsLoader:
    """Loads Level 2 instructions from ``<root>/<skill_id>/SKILL.md``.

    The markdown body becomes the system prompt. The frontmatter may carry
    ``usage_guidelines``, ``limitations``, ``examples`` and
    ``parameters: {required: [...], optional: [...]}``.
    """

    def __init__(self, root_dir: Optional[str] = None):
        """Initialize the loader.

        Args:
            root_dir: Skills root directory. Defaults to ``settings.SKILLS_DIR``.
        """
        self.root_dir = root_dir or settings.SKILLS_DIR

    async def load_instructions(self, skill_id: str) -> SkillInstructions:
        """Read and parse the instructions of ``skill_id`` off the event loop."""
        return await asyncio.to_thread(self._read_instructions, skill_id)

    def _read_instructions(self, skill_id: str) -> SkillInstructions:
        filepath = os.path.join(self.root_dir, skill_id, SKILL_FILENAME)
        frontmatter, body = parse_skill_file(filepath)

        parameters = frontmatter.get("parameters") or {}
        instructions = SkillInstructions(
            system_prompt=body,
            examples=[SkillExample(**example) for example in frontmatter.get("examples") or []],
            parameters=SkillParameters(
                required=[ParameterDef(**p) for p in parameters.get("required") or []],
                optional=[ParameterDef(**p) for p in parameters.get("optional") or []],
            ),
            usage_guidelines=str(frontmatter.get("usage_guidelines") or "").strip(),
            limitations=str(frontmatter.get("limitations") or "").strip(),
        )
        logger.debug("skill_instructions_read", skill_id=skill_id, filepath=filepath)
        return instructions


class DirectoryResourcesLoader:
    """Loads Level 3 resources from the sub-directories of ``<root>/<skill_id>``."""

    def __init__(self, root_dir: Optional[str] = None):
        """Initialize the loader.

        Args:
            root_dir: Skills root directory. Defaults to ``settings.SKILLS_DIR``.
        """
        self.root_dir = root_dir or settings.SKILLS_DIR

    async def load_resources(self, skill_id: str) -> SkillResources:
        """Read the resources of ``skill_id`` off the event loop."""
        return await asyncio.to_thread(self._read_resources, skill_id)

    def _read_resources(self, skill_id: str) -> SkillResources:
        skill_dir = os.path.join(self.root_dir, skill_id)
        if not os.path.isdir(skill_dir):
            raise FileNotFoundError(f"skill directory not found: {skill_dir}")

        dependencies: List[str] = []
        requirements = os.path.join(skill_dir, REQUIREMENTS_FILENAME)
        if os.path.isfile(requirements):
            with open(requirements, "r", encoding="utf-8") as f:
                dependencies = [line.strip() for line in f if line.strip() and not line.startswith("#")]

        resources = SkillResources(
            scripts=_read_text_files(os.path.join(skill_dir, "scripts")),
            templates=_read_text_files(os.path.join(skill_dir, "templates")),
            dependencies=dependencies,
            config_files=_read_text_files(os.path.join(skill_dir, "config")),
            data_files=_read_binary_files(os.path.join(skill_dir, "data")),
        )
        logger.debug("skill_resources_read", skill_id=skill_id, size=resources.estimate_size())
        return resources


def build_skill_definition(frontmatter: Dict[str, Any], default_id: str) -> SkillDefinition:
    """Build the Level 1 definition of a skill from its frontmatter."""
    metadata = SkillMetadata(
        version=str(frontmatter.get("version", "1.0.0")),
        author=str(frontmatter.get("author") or ""),
        license=str(frontmatter.get("license") or "MIT"),
        repository=str(frontmatter.get("repository") or ""),
        extra=frontmatter.get("extra") or {},
    )
    return SkillDefinition(
        id=str(frontmatter.get("id") or default_id),
        name=str(frontmatter.get("name") or default_id),
        description=str(frontmatter.get("description") or ""),
        category=SkillCategory(frontmatter.get("category") or SkillCategory.GENERAL.value),
        tags=_as_list(frontmatter.get("tags")),
        dependencies=_as_list(frontmatter.get("dependencies")),
        metadata=metadata,
    )


def discover_skills(root_dir: Optional[str] = None) -> List[ProgressiveSkill]:
    """Build Level 1 progressive skills for every skill directory under ``root_dir``.

    Only frontmatter is parsed here; instructions and resources are wired to the
    filesystem loaders and read on demand. Invalid skill files are logged and
    skipped.

    Args:
        root_dir: Skills root directory. Defaults to ``settings.SKILLS_DIR``.

    Returns:
        List[ProgressiveSkill]: Discovered skills in directory-name order.
    """
    root_dir = root_dir or settings.SKILLS_DIR
    if not os.path.isdir(root_dir):
        logger.warning("skills_directory_not_found", path=root_dir)
        return []

    instructions_loader = MarkdownInstructionsLoader(root_dir)
    resources_loader = DirectoryResourcesLoader(root_dir)

    skills: List[ProgressiveSkill] = []
    for dirname in sorted(os.listdir(root_dir)):
        filepath = os.path.join(root_dir, dirname, SKILL_FILENAME)
        if not os.path.isfile(filepath):
            continue

        try:
            frontmatter, _ = parse_skill_file(filepath)
            definition = build_skill_definition(frontmatter, default_id=dirname)
        except (OSError, ValueError, yaml.YAMLError, ValidationError) as e:
            logger.warning("skill_discovery_failed", filepath=filepath, error=str(e))
            continue

        if definition.id != dirname:
            logger.warning("skill_id_directory_mismatch", skill_id=definition.id, directory=dirname)
            continue

        skills.append(
            ProgressiveSkill(
                definition,
                instructions_loader=instructions_loader,
                resources_loader=resources_loader,
            )
        )
        logger.info("skill_discovered", skill_id=definition.id, category=definition.category.value)

    return skills
