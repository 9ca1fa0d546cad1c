"""Meta-tool: one tool-calling entry point for every registered skill.

Instead of submitting one tool schema per skill (~500 tokens each), the agent
exposes a single ``use_skill`` tool plus a Level 1 listing (~100 tokens per
skill). A skill's instructions are materialized only when the LLM actually
invokes it.
"""

import json
from typing import (
    Any,
    Dict,
    List,
    Optional,
)

from langchain_core.tools import (
    BaseTool,
    StructuredTool,
)
from pydantic import (
    BaseModel,
    Field,
)

from skill_runtime.core.config import settings
from skill_runtime.core.logging import logger
from skill_runtime.core.skills.base import Skill
from skill_runtime.core.skills.errors import (
    InvalidSkillConfigError,
    SkillAlreadyLoadedError,
    SkillError,
)
from skill_runtime.core.skills.manager import SkillManager
from skill_runtime.core.skills.schema import (
    LoadConfig,
    SkillCapability,
)

META_TOOL_NAME = "use_skill"

META_TOOL_DESCRIPTION = """Use a specific skill to accomplish a task.
This is a meta-tool that provides access to all available skills.

Usage:
1. Set list_skills=true to see all available skills
2. Choose a skill by setting skill_name
3. Provide the action and its parameters in the params field"""

# Rough token costs used for the context-cost comparison
TRADITIONAL_TOKENS_PER_SKILL = 500
META_TOOL_BASE_TOKENS = 200
META_TOOL_TOKENS_PER_SKILL = 100
CHARS_PER_TOKEN = 4


class UseSkillInput(BaseModel):
    """Arguments accepted by the ``use_skill`` tool."""

    skill_name: Optional[str] = Field(
        default=None,
        description="ID of the skill to use (e.g. 'coding', 'data-analysis', 'research')",
    )
    action: Optional[str] = Field(
        default=None,
        description="Action to perform with the skill (e.g. 'analyze', 'generate', 'query')",
    )
    params: Optional[Dict[str, Any]] = Field(default=None, description="Parameters for the skill action")
    list_skills: bool = Field(default=False, description="Set to true to list all available skills")


class SkillMetaTool:
    """Proxies ``use_skill`` calls into manager lookups and activations."""

    def __init__(
        self,
        manager: SkillManager,
        verbose: Optional[bool] = None,
        load_config: Optional[LoadConfig] = None,
    ):
        """Initialize the meta-tool.

        Args:
            manager: The skill manager to resolve skills from.
            verbose: Log activations at info level. Defaults to ``settings.SKILLS_META_TOOL_VERBOSE``.
            load_config: Config used when a skill is activated on demand.
        """
        self._manager = manager
        self._verbose = settings.SKILLS_META_TOOL_VERBOSE if verbose is None else verbose
        self._load_config = load_config

    @property
    def name(self) -> str:
        return META_TOOL_NAME

    @property
    def description(self) -> str:
        return META_TOOL_DESCRIPTION

    @property
    def parameters(self) -> Dict[str, Any]:
        """JSON schema of the tool arguments. No field is required on its own."""
        return UseSkillInput.model_json_schema()

    async def execute(self, args: Dict[str, Any]) -> Any:
        """Handle one ``use_skill`` call.

        ``{"list_skills": true}`` returns the Level 1 listing. Otherwise the named
        skill is activated if needed, its instructions are materialized, and the
        action is dispatched to the skill when it executes actions.

        Raises:
            InvalidSkillConfigError: If ``skill_name`` is missing.
            SkillNotFoundError: If the skill is not registered.
            SkillLoadError: If activation or instructions loading failed.
            SkillActionError: If the skill's action handler failed.
        """
        if args.get("list_skills") is True:
            return self.list_available_skills()

        skill_name = args.get("skill_name")
        if not isinstance(skill_name, str) or not skill_name:
            raise InvalidSkillConfigError(message="skill_name is required", operation=META_TOOL_NAME)

        action = args.get("action") or ""
        params = args.get("params") or {}
        logger.info("meta_tool_invoked", skill_id=skill_name, action=action)

        skill = await self._get_or_load_skill(skill_name)

        if skill.has_capability(SkillCapability.PROGRESSIVE) and not skill.is_instructions_loaded:
            instructions = await skill.load_instructions()
            self._log("meta_tool_instructions_loaded", skill_id=skill_name, size=instructions.estimate_size())

        return await self._execute_skill_action(skill, action, params)

    def list_available_skills(self) -> Dict[str, Any]:
        """Return Level 1 metadata for every registered skill."""
        skills = [
            {
                "id": skill.id,
                "name": skill.name,
                "description": skill.description,
                "category": skill.category.value,
                "tags": skill.tags,
            }
            for skill in self._manager.list_skills()
        ]
        return {"skills": skills, "total": len(skills)}

    async def _get_or_load_skill(self, skill_name: str) -> Skill:
        skill = self._manager.get(skill_name)
        if not self._manager.is_loaded(skill_name):
            try:
                await self._manager.load(skill_name, self._load_config)
                self._log("meta_tool_skill_loaded", skill_id=skill_name)
            except SkillAlreadyLoadedError:
                # activated by a concurrent call
                pass
        return skill

    async def _execute_skill_action(self, skill: Skill, action: str, params: Dict[str, Any]) -> Any:
        if skill.has_capability(SkillCapability.ACTIONS):
            return await skill.execute_action(action, params)

        return {
            "skill": skill.name,
            "action": action,
            "params": params,
            "result": f"Skill {skill.name} action {action} executed with params: {params}",
        }

    def _log(self, event: str, **kwargs: Any) -> None:
        if self._verbose:
            logger.info(event, **kwargs)
        else:
            logger.debug(event, **kwargs)

    def as_tool(self) -> BaseTool:
        """Wrap the meta-tool as a LangChain tool for an agent's tool list.

        The tool returns JSON text. Skill errors are returned as messages so the
        LLM can recover, e.g. by listing the available skills.
        """

        async def use_skill(
            skill_name: Optional[str] = None,
            action: Optional[str] = None,
            params: Optional[Dict[str, Any]] = None,
            list_skills: bool = False,
        ) -> str:
            args = {"skill_name": skill_name, "action": action, "params": params, "list_skills": list_skills}
            try:
                result = await self.execute(args)
            except SkillError as e:
                logger.warning("meta_tool_call_failed", skill_id=skill_name, action=action, error=str(e))
                available = ", ".join(s.id for s in self._manager.list_skills())
                return f"Error: {e}. Available skills: {available}"
            return json.dumps(result, ensure_ascii=False, default=str)

        return StructuredTool.from_function(
            coroutine=use_skill,
            name=self.name,
            description=self.description,
            args_schema=UseSkillInput,
        )


def skill_info(skill: Skill) -> str:
    """Format a one-line Level 1 summary of a skill for an LLM prompt."""
    tags = ", ".join(skill.tags)
    return f"{skill.name} ({skill.id}): {skill.description} [Category: {skill.category.value}, Tags: {tags}]"


def get_all_skills_info(manager: SkillManager) -> str:
    """Build the Level 1 skills section of a system prompt."""
    skills = manager.list_skills()
    lines: List[str] = [f"Available Skills ({len(skills)}):", ""]
    for i, skill in enumerate(skills, start=1):
        lines.append(f"{i}. {skill_info(skill)}")
    return "\n".join(lines) + "\n"


def estimate_tokens_for_skill_list(manager: SkillManager) -> int:
    """Roughly estimate the token cost of the Level 1 listing."""
    return len(get_all_skills_info(manager)) // CHARS_PER_TOKEN


def compare_token_usage(skill_count: int) -> Dict[str, Any]:
    """Compare the token cost of per-skill tools against the meta-tool.

    Args:
        skill_count: Number of registered skills.

    Returns:
        Dict[str, Any]: Token estimates for both approaches and the savings.
    """
    traditional = skill_count * TRADITIONAL_TOKENS_PER_SKILL
    meta_tool = META_TOOL_BASE_TOKENS + skill_count * META_TOOL_TOKENS_PER_SKILL
    reduction = (traditional - meta_tool) / traditional * 100 if traditional else 0.0
    return {
        "skill_count": skill_count,
        "traditional_tokens": traditional,
        "meta_tool_tokens": meta_tool,
        "tokens_saved": traditional - meta_tool,
        "reduction_percent": reduction,
    }
