"""Progressive-disclosure skills.

A progressive skill materializes its data in three levels, each only when needed:

1. METADATA: id, name, description, category and tags. Always resident, zero I/O.
2. INSTRUCTIONS: system prompt, examples and parameters. Loaded when the LLM selects
   the skill.
3. RESOURCES: scripts, templates and data files. Loaded at execution time and never
   placed in the LLM context.

Levels 2 and 3 come from loader collaborators supplied by the embedding
application. Transitions only move forward; ``unload`` drops both payloads and
returns the skill to METADATA.
"""

from typing import (
    Any,
    Awaitable,
    Callable,
    FrozenSet,
    List,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)

from langchain_core.tools import BaseTool

from skill_runtime.core.logging import logger
from skill_runtime.core.skills.base import (
    ActionHandler,
    BaseSkill,
    LoadHook,
    UnloadHook,
    call_maybe_async,
    hold_lock,
)
from skill_runtime.core.skills.errors import (
    SkillError,
    SkillLoadError,
)
from skill_runtime.core.skills.schema import (
    LoadLevel,
    SkillCapability,
    SkillDefinition,
    SkillExample,
    SkillInstructions,
    SkillResources,
)


@runtime_checkable
class InstructionsLoader(Protocol):
    """Materializes the Level 2 payload of a skill."""

    async def load_instructions(self, skill_id: str) -> SkillInstructions:
        """Load the instructions for ``skill_id``."""


@runtime_checkable
class ResourcesLoader(Protocol):
    """Materializes the Level 3 payload of a skill."""

    async def load_resources(self, skill_id: str) -> SkillResources:
        """Load the resources for ``skill_id``."""


InstructionsSource = Union[InstructionsLoader, Callable[[str], Awaitable[SkillInstructions]]]
ResourcesSource = Union[ResourcesLoader, Callable[[str], Awaitable[SkillResources]]]


class ProgressiveSkill(BaseSkill):
    """Skill whose instructions and resources are loaded on demand.

    Tools are reached through the meta-tool rather than registered individually,
    so ``get_tools`` is always empty.
    """

    def __init__(
        self,
        definition: Optional[SkillDefinition] = None,
        *,
        instructions: Optional[SkillInstructions] = None,
        instructions_loader: Optional[InstructionsSource] = None,
        resources_loader: Optional[ResourcesSource] = None,
        on_load: Optional[LoadHook] = None,
        on_unload: Optional[UnloadHook] = None,
        action_handler: Optional[ActionHandler] = None,
        **fields: Any,
    ):
        """Initialize the skill at LoadLevel.METADATA.

        Args:
            definition: Immutable construction parameters (Level 1 data).
            instructions: Instructions used when no instructions loader is configured.
            instructions_loader: Loader object or coroutine function for Level 2.
            resources_loader: Loader object or coroutine function for Level 3.
            on_load: Hook run on activation.
            on_unload: Hook run on deactivation, before payloads are dropped.
            action_handler: Coroutine ``(action, params)`` executing the skill's domain logic.
            **fields: Shorthand for ``SkillDefinition`` fields.
        """
        super().__init__(
            definition,
            on_load=on_load,
            on_unload=on_unload,
            action_handler=action_handler,
            **fields,
        )
        self._preset_instructions = instructions
        self._instructions_loader = instructions_loader
        self._resources_loader = resources_loader

        self._instructions: Optional[SkillInstructions] = None
        self._resources: Optional[SkillResources] = None
        self._level = LoadLevel.METADATA

    @property
    def capabilities(self) -> FrozenSet[SkillCapability]:
        return super().capabilities | {SkillCapability.PROGRESSIVE}

    @property
    def load_level(self) -> LoadLevel:
        with self._lock:
            return self._level

    @property
    def is_instructions_loaded(self) -> bool:
        with self._lock:
            return self._instructions is not None

    @property
    def is_resources_loaded(self) -> bool:
        with self._lock:
            return self._resources is not None

    async def load_instructions(self) -> SkillInstructions:
        """Materialize Level 2 and advance to LoadLevel.INSTRUCTIONS.

        Returns the cached object without calling the loader again when the
        instructions are already materialized.

        Raises:
            SkillLoadError: If the instructions loader raised.
        """
        async with hold_lock(self._transition_lock):
            with self._lock:
                if self._instructions is not None:
                    return self._instructions

            if self._instructions_loader is not None:
                instructions = await self._run_loader(self._instructions_loader, "load_instructions")
            elif self._preset_instructions is not None:
                instructions = self._preset_instructions.model_copy(deep=True)
            else:
                instructions = SkillInstructions()

            with self._lock:
                self._instructions = instructions
                self._level = max(self._level, LoadLevel.INSTRUCTIONS)
                self._touch()

        logger.debug("skill_instructions_loaded", skill_id=self.id, size=instructions.estimate_size())
        return instructions

    async def load_resources(self) -> SkillResources:
        """Materialize Level 3 and advance to LoadLevel.RESOURCES.

        Does not require the instructions to be loaded first.

        Raises:
            SkillLoadError: If the resources loader raised.
        """
        async with hold_lock(self._transition_lock):
            with self._lock:
                if self._resources is not None:
                    return self._resources

            if self._resources_loader is not None:
                resources = await self._run_loader(self._resources_loader, "load_resources")
            else:
                resources = SkillResources()

            with self._lock:
                self._resources = resources
                self._level = LoadLevel.RESOURCES
                self._touch()

        logger.debug("skill_resources_loaded", skill_id=self.id, size=resources.estimate_size())
        return resources

    def get_instructions(self) -> Optional[SkillInstructions]:
        """Return the cached instructions without triggering a load."""
        with self._lock:
            return self._instructions

    def get_resources(self) -> Optional[SkillResources]:
        """Return the cached resources without triggering a load."""
        with self._lock:
            return self._resources

    def get_tools(self) -> List[BaseTool]:
        return []

    def get_system_prompt(self) -> str:
        with self._lock:
            return self._instructions.system_prompt if self._instructions is not None else ""

    def get_examples(self) -> List[SkillExample]:
        with self._lock:
            if self._instructions is None:
                return []
            return [e.model_copy(deep=True) for e in self._instructions.examples]

    async def _run_loader(self, loader: Any, method: str) -> Any:
        fn = getattr(loader, method, loader)
        try:
            return await call_maybe_async(fn, self.id)
        except SkillError:
            raise
        except Exception as e:
            logger.warning("skill_payload_load_failed", skill_id=self.id, operation=method, error=str(e))
            raise SkillLoadError(self.id, e, operation=method) from e

    def _release_payloads(self) -> None:
        self._instructions = None
        self._resources = None
        self._level = LoadLevel.METADATA
