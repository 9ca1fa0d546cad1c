"""Skills system for progressive disclosure of agent capabilities.

A ``SkillManager`` tracks registered skills and which of them are active,
activating dependencies before the skills that need them. Progressive skills
materialize their instructions and resources only when needed, and the
``SkillMetaTool`` exposes every skill to the LLM through one ``use_skill`` tool.
"""

from skill_runtime.core.skills.base import (
    BaseSkill,
    Skill,
)
from skill_runtime.core.skills.errors import (
    CircularDependencyError,
    DependencyDepthExceededError,
    DependencyNotMetError,
    InvalidSkillConfigError,
    SkillActionError,
    SkillActionNotSupportedError,
    SkillAlreadyLoadedError,
    SkillAlreadyRegisteredError,
    SkillAlreadyUnloadedError,
    SkillError,
    SkillLoadError,
    SkillNotFoundError,
    SkillNotLoadedError,
    SkillUnloadError,
)
from skill_runtime.core.skills.loaders import (
    DirectoryResourcesLoader,
    MarkdownInstructionsLoader,
    discover_skills,
)
from skill_runtime.core.skills.manager import SkillManager
from skill_runtime.core.skills.meta_tool import (
    SkillMetaTool,
    compare_token_usage,
    estimate_tokens_for_skill_list,
    get_all_skills_info,
    skill_info,
)
from skill_runtime.core.skills.progressive import (
    InstructionsLoader,
    ProgressiveSkill,
    ResourcesLoader,
)
from skill_runtime.core.skills.schema import (
    LoadConfig,
    LoadLevel,
    ParameterDef,
    SkillCapability,
    SkillCategory,
    SkillDefinition,
    SkillExample,
    SkillInstructions,
    SkillMetadata,
    SkillParameters,
    SkillResources,
)

__all__ = [
    "BaseSkill",
    "CircularDependencyError",
    "DependencyDepthExceededError",
    "DependencyNotMetError",
    "DirectoryResourcesLoader",
    "InstructionsLoader",
    "InvalidSkillConfigError",
    "LoadConfig",
    "LoadLevel",
    "MarkdownInstructionsLoader",
    "ParameterDef",
    "ProgressiveSkill",
    "ResourcesLoader",
    "Skill",
    "SkillActionError",
    "SkillActionNotSupportedError",
    "SkillAlreadyLoadedError",
    "SkillAlreadyRegisteredError",
    "SkillAlreadyUnloadedError",
    "SkillCapability",
    "SkillCategory",
    "SkillDefinition",
    "SkillError",
    "SkillExample",
    "SkillInstructions",
    "SkillLoadError",
    "SkillManager",
    "SkillMetadata",
    "SkillMetaTool",
    "SkillNotFoundError",
    "SkillNotLoadedError",
    "SkillParameters",
    "SkillResources",
    "SkillUnloadError",
    "compare_token_usage",
    "discover_skills",
    "estimate_tokens_for_skill_list",
    "get_all_skills_info",
    "skill_info",
]
