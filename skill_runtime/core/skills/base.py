"""Skill contract and the basic skill implementation.

A skill is an independently activatable capability bundle: metadata, a system
prompt, few-shot examples and LangChain tools. Concrete skills either subclass
``BaseSkill`` or pass hooks to it:

```python
skill = BaseSkill(
    id="coding",
    name="Coding",
    category=SkillCategory.CODING,
    tags=["coding", "debug"],
    on_load=open_sandbox,
)
```
"""

import asyncio
import inspect
import threading
from abc import (
    ABC,
    abstractmethod,
)
from contextlib import asynccontextmanager
from datetime import datetime
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    List,
    Optional,
    Union,
)

from langchain_core.tools import BaseTool

from skill_runtime.core.logging import logger
from skill_runtime.core.skills.errors import (
    SkillActionError,
    SkillActionNotSupportedError,
    SkillAlreadyLoadedError,
    SkillError,
    SkillLoadError,
    SkillNotLoadedError,
    SkillUnloadError,
)
from skill_runtime.core.skills.schema import (
    LoadConfig,
    LoadLevel,
    SkillCapability,
    SkillCategory,
    SkillDefinition,
    SkillExample,
    SkillMetadata,
)

LoadHook = Callable[[LoadConfig], Union[Awaitable[None], None]]
UnloadHook = Callable[[], Union[Awaitable[None], None]]
ActionHandler = Callable[[str, Dict[str, Any]], Awaitable[Any]]

# Polling interval bounds while waiting for a lifecycle lock
LOCK_POLL_MIN_SECONDS = 0.001
LOCK_POLL_MAX_SECONDS = 0.05


async def call_maybe_async(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async callable and return its (awaited) result."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


@asynccontextmanager
async def hold_lock(lock: threading.Lock) -> AsyncIterator[None]:
    """Hold a thread lock across awaits without blocking the event loop.

    The lock may be contended by coroutines running on other threads and other
    event loops, so a waiter polls with ``acquire(blocking=False)`` and sleeps on
    its own loop between attempts. Cancelling a waiter never leaves the lock held.

    Args:
        lock: A non-reentrant ``threading.Lock``.
    """
    delay = LOCK_POLL_MIN_SECONDS
    while not lock.acquire(blocking=False):
        await asyncio.sleep(delay)
        delay = min(delay * 2, LOCK_POLL_MAX_SECONDS)
    try:
        yield
    finally:
        lock.release()


class Skill(ABC):
    """Contract every activatable skill implements.

    Identity accessors never perform I/O. ``load`` and ``unload`` run user
    initialization and may block on network or file access; cancelling the
    awaiting task cancels them.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique, immutable skill ID."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description shown in Level 1 listings."""

    @property
    @abstractmethod
    def category(self) -> SkillCategory:
        """Category of the skill."""

    @property
    @abstractmethod
    def tags(self) -> List[str]:
        """Tags in insertion order. Returns a copy."""

    @property
    @abstractmethod
    def dependencies(self) -> List[str]:
        """IDs of skills that must be active first, in declared order. Returns a copy."""

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        """Whether the skill is currently active."""

    @abstractmethod
    async def load(self, config: Optional[LoadConfig] = None) -> None:
        """Activate the skill."""

    @abstractmethod
    async def unload(self) -> None:
        """Deactivate the skill."""

    @abstractmethod
    def get_tools(self) -> List[BaseTool]:
        """Tools contributed by the skill."""

    @abstractmethod
    def get_system_prompt(self) -> str:
        """System prompt contributed by the skill."""

    @abstractmethod
    def get_examples(self) -> List[SkillExample]:
        """Few-shot examples contributed by the skill."""

    @abstractmethod
    def get_metadata(self) -> SkillMetadata:
        """A copy of the skill metadata."""

    @property
    def load_level(self) -> LoadLevel:
        """Current materialization depth. Basic skills are fully materialized while loaded."""
        return LoadLevel.INSTRUCTIONS if self.is_loaded else LoadLevel.METADATA

    @property
    def capabilities(self) -> FrozenSet[SkillCapability]:
        """Optional capabilities implemented by this skill."""
        return frozenset()

    def has_capability(self, capability: SkillCapability) -> bool:
        """Check whether the skill implements an optional capability."""
        return capability in self.capabilities

    async def execute_action(self, action: str, params: Dict[str, Any]) -> Any:
        """Run domain logic for ``action``. Only available with the ACTIONS capability.

        Raises:
            SkillActionNotSupportedError: If the skill does not execute actions.
        """
        raise SkillActionNotSupportedError(self.id, operation="execute_action")


class BaseSkill(Skill):
    """Basic skill with eager prompt, examples and tools.

    Instance state (tags, tools, examples, loaded flag) is guarded by a per-skill
    lock. Lifecycle transitions hold a second, thread-level lock across the hook
    awaits, so concurrent ``load`` calls from any thread or event loop run the hook
    at most once.
    """

    def __init__(
        self,
        definition: Optional[SkillDefinition] = None,
        *,
        tools: Optional[List[BaseTool]] = None,
        on_load: Optional[LoadHook] = None,
        on_unload: Optional[UnloadHook] = None,
        action_handler: Optional[ActionHandler] = None,
        **fields: Any,
    ):
        """Initialize the skill.

        Args:
            definition: Immutable construction parameters. Mutually exclusive with ``fields``.
            tools: LangChain tools contributed while the skill is active.
            on_load: Hook run on activation; receives the ``LoadConfig``.
            on_unload: Hook run on deactivation.
            action_handler: Coroutine ``(action, params)`` executing the skill's domain logic.
            **fields: Shorthand for ``SkillDefinition`` fields when no definition is given.
        """
        if definition is None:
            definition = SkillDefinition(**fields)
        elif fields:
            raise TypeError("pass either a SkillDefinition or keyword fields, not both")

        self._definition = definition
        self._tags: List[str] = list(definition.tags)
        self._dependencies: List[str] = list(definition.dependencies)
        self._system_prompt = definition.system_prompt
        self._examples: List[SkillExample] = [e.model_copy(deep=True) for e in definition.examples]
        self._metadata = definition.metadata.model_copy(deep=True) if definition.metadata else SkillMetadata()
        self._tools: List[BaseTool] = list(tools or [])

        self._on_load = on_load
        self._on_unload = on_unload
        self._action_handler = action_handler

        self._loaded = False
        self._lock = threading.RLock()
        self._transition_lock = threading.Lock()

    @property
    def id(self) -> str:
        return self._definition.id

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def description(self) -> str:
        return self._definition.description

    @property
    def category(self) -> SkillCategory:
        return self._definition.category

    @property
    def tags(self) -> List[str]:
        with self._lock:
            return list(self._tags)

    @property
    def dependencies(self) -> List[str]:
        with self._lock:
            return list(self._dependencies)

    @property
    def is_loaded(self) -> bool:
        with self._lock:
            return self._loaded

    @property
    def capabilities(self) -> FrozenSet[SkillCapability]:
        if self._action_handler is not None:
            return frozenset({SkillCapability.ACTIONS})
        return frozenset()

    async def load(self, config: Optional[LoadConfig] = None) -> None:
        """Run the load hook and mark the skill active.

        Raises:
            SkillAlreadyLoadedError: If the skill is already active.
            SkillLoadError: If the load hook raised; the skill stays inactive.
        """
        config = config or LoadConfig()
        async with hold_lock(self._transition_lock):
            if self.is_loaded:
                raise SkillAlreadyLoadedError(self.id, operation="load")

            if self._on_load is not None:
                try:
                    await call_maybe_async(self._on_load, config)
                except SkillError:
                    raise
                except Exception as e:
                    raise SkillLoadError(self.id, e) from e

            with self._lock:
                self._loaded = True
                self._touch()

    async def unload(self) -> None:
        """Run the unload hook, mark the skill inactive and release cached payloads.

        Raises:
            SkillNotLoadedError: If the skill is not active.
            SkillUnloadError: If the unload hook raised; the skill stays active.
        """
        async with hold_lock(self._transition_lock):
            if not self.is_loaded:
                raise SkillNotLoadedError(self.id, operation="unload")

            if self._on_unload is not None:
                try:
                    await call_maybe_async(self._on_unload)
                except SkillError:
                    raise
                except Exception as e:
                    raise SkillUnloadError(self.id, e) from e

            with self._lock:
                self._loaded = False
                self._release_payloads()
                self._touch()

    async def execute_action(self, action: str, params: Dict[str, Any]) -> Any:
        """Delegate ``action`` to the configured action handler.

        Raises:
            SkillActionNotSupportedError: If no action handler was configured.
            SkillActionError: If the handler raised.
        """
        if self._action_handler is None:
            return await super().execute_action(action, params)

        try:
            return await self._action_handler(action, params)
        except SkillError:
            raise
        except Exception as e:
            logger.warning("skill_action_failed", skill_id=self.id, action=action, error=str(e))
            raise SkillActionError(self.id, action, e) from e

    def get_tools(self) -> List[BaseTool]:
        with self._lock:
            return list(self._tools)

    def get_system_prompt(self) -> str:
        with self._lock:
            return self._system_prompt

    def get_examples(self) -> List[SkillExample]:
        with self._lock:
            return [e.model_copy(deep=True) for e in self._examples]

    def get_metadata(self) -> SkillMetadata:
        with self._lock:
            return self._metadata.model_copy(deep=True)

    def add_tool(self, tool: BaseTool) -> None:
        """Add a tool to the skill."""
        with self._lock:
            self._tools.append(tool)

    def remove_tool(self, tool_name: str) -> None:
        """Remove every tool named ``tool_name``."""
        with self._lock:
            self._tools = [t for t in self._tools if t.name != tool_name]

    def add_tag(self, tag: str) -> None:
        """Append a tag unless it is already present."""
        with self._lock:
            if tag not in self._tags:
                self._tags.append(tag)

    def remove_tag(self, tag: str) -> None:
        with self._lock:
            self._tags = [t for t in self._tags if t != tag]

    def set_system_prompt(self, prompt: str) -> None:
        with self._lock:
            self._system_prompt = prompt

    def add_example(self, example: SkillExample) -> None:
        with self._lock:
            self._examples.append(example)

    def _touch(self) -> None:
        self._metadata.updated_at = datetime.now()

    def _release_payloads(self) -> None:
        """Drop lazily materialized payloads. Called under the instance lock on unload."""

    def __repr__(self) -> str:
        """Return a string representation of the skill."""
        return f"<{self.__class__.__name__} id={self.id!r} category={self.category.value} loaded={self.is_loaded}>"
