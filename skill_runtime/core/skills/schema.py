"""Data models for skills: categories, load levels, payloads and load configuration."""

from datetime import datetime
from enum import (
    Enum,
    IntEnum,
)
from typing import (
    Any,
    Dict,
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


class SkillCategory(str, Enum):
    """Closed set of skill categories."""

    CODING = "coding"
    DATA_ANALYSIS = "data_analysis"
    KNOWLEDGE = "knowledge"
    CREATIVE = "creative"
    RESEARCH = "research"
    AUTOMATION = "automation"
    COMMUNICATION = "communication"
    GENERAL = "general"


class LoadLevel(IntEnum):
    """Depth to which a skill's payload is materialized.

    METADATA (~100B/skill) is always resident so the LLM can enumerate skills.
    INSTRUCTIONS (~2-5KB/skill) is paid only for skills the LLM selects.
    RESOURCES (~10-100KB/skill) is paid at execution time and never enters the LLM context.
    """

    METADATA = 1
    INSTRUCTIONS = 2
    RESOURCES = 3


class SkillCapability(str, Enum):
    """Optional capabilities a skill may expose beyond the basic contract."""

    PROGRESSIVE = "progressive"
    ACTIONS = "actions"


class SkillMetadata(BaseModel):
    """Descriptive metadata attached to a skill.

    Attributes:
        version: Semantic version of the skill.
        author: Author or owning team.
        license: License identifier.
        repository: Source repository URL.
        created_at: When the skill object was created.
        updated_at: Last lifecycle transition of the skill.
        extra: Free-form additional metadata.
    """

    version: str = Field(default="1.0.0")
    author: str = Field(default="")
    license: str = Field(default="MIT")
    repository: str = Field(default="")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    extra: Dict[str, Any] = Field(default_factory=dict)


class SkillExample(BaseModel):
    """A few-shot example shown to the LLM once a skill's instructions are loaded."""

    input: str
    output: str
    reasoning: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ParameterDef(BaseModel):
    """Definition of a single skill parameter."""

    name: str
    type: str = "string"
    description: str = ""
    default: Any = None
    example: Any = None
    constraints: Dict[str, Any] = Field(default_factory=dict)


class SkillParameters(BaseModel):
    """Required and optional parameters accepted by a skill."""

    required: List[ParameterDef] = Field(default_factory=list)
    optional: List[ParameterDef] = Field(default_factory=list)


class SkillInstructions(BaseModel):
    """Level 2 payload: everything the LLM needs to know to use a skill."""

    system_prompt: str = ""
    examples: List[SkillExample] = Field(default_factory=list)
    parameters: SkillParameters = Field(default_factory=SkillParameters)
    usage_guidelines: str = ""
    limitations: str = ""

    def estimate_size(self) -> int:
        """Estimate the payload size in bytes (prompt, guidelines, limitations and examples)."""
        size = len(self.system_prompt) + len(self.usage_guidelines) + len(self.limitations)
        for example in self.examples:
            size += len(example.input) + len(example.output) + len(example.reasoning)
        return size


class SkillResources(BaseModel):
    """Level 3 payload: execution-time assets that never enter the LLM context."""

    scripts: Dict[str, str] = Field(default_factory=dict)
    templates: Dict[str, str] = Field(default_factory=dict)
    dependencies: List[str] = Field(default_factory=list)
    config_files: Dict[str, str] = Field(default_factory=dict)
    data_files: Dict[str, bytes] = Field(default_factory=dict)

    def estimate_size(self) -> int:
        """Estimate the payload size in bytes across scripts, templates, config and data files."""
        size = sum(len(script) for script in self.scripts.values())
        size += sum(len(template) for template in self.templates.values())
        size += sum(len(config) for config in self.config_files.values())
        size += sum(len(data) for data in self.data_files.values())
        return size


class LoadConfig(BaseModel):
    """Options passed to a skill's load hook.

    Attributes:
        lazy: Hint for the hook to defer heavy initialization.
        auto_load_dependencies: When true, ``SkillManager.load`` activates dependencies first.
        context: Free-form caller-supplied values made available to the hook.
    """

    lazy: bool = False
    auto_load_dependencies: bool = False
    context: Dict[str, Any] = Field(default_factory=dict)


class SkillDefinition(BaseModel):
    """Immutable construction parameters for a skill.

    Tags are de-duplicated with their first-seen order preserved. Dependencies keep
    their declared order and may reference skills that are not registered yet.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    category: SkillCategory = SkillCategory.GENERAL
    tags: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    system_prompt: str = ""
    examples: List[SkillExample] = Field(default_factory=list)
    metadata: Optional[SkillMetadata] = None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: List[str]) -> List[str]:
        seen = set()
        unique = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.add(tag)
                unique.append(tag)
        return unique
