"""Skill manager: registry, activation and dependency resolution.

The manager owns two maps keyed by skill ID: every registered skill, and the
subset currently activated. It is constructed explicitly and passed to whatever
needs it (agent executor, meta-tool); there is no module-level instance.

Map access is guarded by a thread lock held only for short, synchronous critical
sections, so read-only queries are safe from any thread. Lifecycle transitions
(load, unload, unregister, dependency resolution) are serialized by a second
thread lock held across the skill hooks, so callers on different threads, each
with its own event loop, never activate the same skill twice.
"""

import threading
from typing import (
    Dict,
    Iterable,
    List,
    Optional,
)

from skill_runtime.core.config import settings
from skill_runtime.core.logging import logger
from skill_runtime.core.skills.base import (
    Skill,
    hold_lock,
)
from skill_runtime.core.skills.errors import (
    CircularDependencyError,
    DependencyDepthExceededError,
    DependencyNotMetError,
    InvalidSkillConfigError,
    SkillAlreadyLoadedError,
    SkillAlreadyRegisteredError,
    SkillError,
    SkillLoadError,
    SkillNotFoundError,
    SkillNotLoadedError,
    SkillUnloadError,
)
from skill_runtime.core.skills.schema import (
    LoadConfig,
    SkillCategory,
)


class SkillManager:
    """Registry of skills and their activation state.

    Invariants:
        - Skill IDs are unique among registered skills.
        - Every loaded ID is also registered.
        - A skill is never activated twice without an unload in between.
        - Dependencies may name skills that are not registered yet; they are only
          checked when ``load_with_dependencies`` runs.
    """

    def __init__(self, max_dependency_depth: Optional[int] = None):
        """Initialize an empty manager.

        Args:
            max_dependency_depth: Longest dependency chain accepted by
                ``load_with_dependencies``. Defaults to ``settings.SKILLS_MAX_DEPENDENCY_DEPTH``.
        """
        self._skills: Dict[str, Skill] = {}
        self._loaded: Dict[str, bool] = {}
        self._lock = threading.RLock()
        self._lifecycle_lock = threading.Lock()
        if max_dependency_depth is None:
            max_dependency_depth = settings.SKILLS_MAX_DEPENDENCY_DEPTH
        self._max_dependency_depth = max_dependency_depth

    # ─── Registration ────────────────────────────────────────────

    def register(self, skill: Optional[Skill]) -> None:
        """Register a skill. It starts inactive.

        Args:
            skill: The skill to register.

        Raises:
            InvalidSkillConfigError: If ``skill`` is None or has an empty ID.
            SkillAlreadyRegisteredError: If a skill with the same ID exists.
        """
        if skill is None:
            raise InvalidSkillConfigError(message="invalid skill config: skill is None", operation="register")
        if not skill.id:
            raise InvalidSkillConfigError(message="invalid skill config: skill ID is empty", operation="register")

        with self._lock:
            if skill.id in self._skills:
                raise SkillAlreadyRegisteredError(skill.id, operation="register")
            self._skills[skill.id] = skill

        logger.info("skill_registered", skill_id=skill.id, category=skill.category.value, tags=skill.tags)

    async def unregister(self, skill_id: str) -> None:
        """Forget a skill, unloading it first if it is active.

        Other skills that declare ``skill_id`` as a dependency are left untouched.

        Raises:
            SkillNotFoundError: If the skill is not registered.
            SkillUnloadError: If the implicit unload failed; the skill stays registered.
        """
        async with hold_lock(self._lifecycle_lock):
            skill = self.get(skill_id)
            if self.is_loaded(skill_id):
                await self._deactivate(skill)

            with self._lock:
                self._skills.pop(skill_id, None)

        logger.info("skill_unregistered", skill_id=skill_id)

    # ─── Activation ──────────────────────────────────────────────

    async def load(self, skill_id: str, config: Optional[LoadConfig] = None) -> None:
        """Activate a registered skill through its load hook.

        Args:
            skill_id: The skill to activate.
            config: Load options; defaults to ``LoadConfig()``. With
                ``auto_load_dependencies`` set, dependencies are activated first.

        Raises:
            SkillNotFoundError: If the skill is not registered.
            SkillAlreadyLoadedError: If the skill is already active.
            SkillLoadError: If the load hook failed; the skill stays inactive.
        """
        config = config or LoadConfig()
        async with hold_lock(self._lifecycle_lock):
            if config.auto_load_dependencies:
                await self._load_with_dependencies(skill_id, config)
                return

            skill = self.get(skill_id)
            if self.is_loaded(skill_id):
                raise SkillAlreadyLoadedError(skill_id, operation="load")
            await self._activate(skill, config)

    async def unload(self, skill_id: str) -> None:
        """Deactivate a skill through its unload hook.

        Raises:
            SkillNotFoundError: If the skill is not registered.
            SkillNotLoadedError: If the skill is not active.
            SkillUnloadError: If the unload hook failed; the skill stays active.
        """
        async with hold_lock(self._lifecycle_lock):
            skill = self.get(skill_id)
            if not self.is_loaded(skill_id):
                raise SkillNotLoadedError(skill_id, operation="unload")
            await self._deactivate(skill)

    async def load_with_dependencies(self, skill_id: str, config: Optional[LoadConfig] = None) -> None:
        """Activate a skill after all of its transitive dependencies.

        Cycles are detected before anything is activated. Dependencies are then
        activated leaves first, each exactly once; already active dependencies are
        skipped. If a dependency fails, the error is raised and dependencies that
        were activated before the failure stay active.

        Raises:
            SkillNotFoundError: If the skill is not registered.
            CircularDependencyError: If the dependency graph reachable from the skill has a cycle.
            DependencyNotMetError: If a dependency is not registered.
            DependencyDepthExceededError: If the dependency chain is too deep.
            SkillAlreadyLoadedError: If the skill itself is already active.
            SkillLoadError: If any load hook failed.
        """
        async with hold_lock(self._lifecycle_lock):
            await self._load_with_dependencies(skill_id, config or LoadConfig())

    async def _load_with_dependencies(self, skill_id: str, config: LoadConfig) -> None:
        skill = self.get(skill_id)
        self._check_circular_dependency(skill_id, self._dependency_graph(), [])

        for dep_id in skill.dependencies:
            if not self.is_loaded(dep_id):
                await self._load_dependency(dep_id, config, required_by=skill_id, depth=1)

        if self.is_loaded(skill_id):
            raise SkillAlreadyLoadedError(skill_id, operation="load_with_dependencies")
        await self._activate(skill, config)

    async def _load_dependency(self, skill_id: str, config: LoadConfig, required_by: str, depth: int) -> None:
        if depth > self._max_dependency_depth:
            raise DependencyDepthExceededError(skill_id, operation="load_with_dependencies")

        with self._lock:
            skill = self._skills.get(skill_id)
        if skill is None:
            logger.warning("skill_dependency_not_met", skill_id=skill_id, required_by=required_by)
            raise DependencyNotMetError(skill_id, required_by=required_by)

        for dep_id in skill.dependencies:
            if not self.is_loaded(dep_id):
                await self._load_dependency(dep_id, config, required_by=skill_id, depth=depth + 1)

        await self._activate(skill, config)
        logger.debug("skill_dependency_loaded", skill_id=skill_id, required_by=required_by)

    def _dependency_graph(self) -> Dict[str, List[str]]:
        with self._lock:
            return {skill_id: skill.dependencies for skill_id, skill in self._skills.items()}

    def _check_circular_dependency(self, skill_id: str, graph: Dict[str, List[str]], visiting: List[str]) -> None:
        """Depth-first search over the IDs currently on the recursion path.

        Unregistered IDs have no outgoing edges here; their absence is reported
        when activation reaches them.
        """
        if skill_id in visiting:
            path = visiting[visiting.index(skill_id) :] + [skill_id]
            logger.warning("skill_circular_dependency_detected", skill_id=skill_id, path=path)
            raise CircularDependencyError(skill_id, path)

        if len(visiting) > self._max_dependency_depth:
            raise DependencyDepthExceededError(skill_id, operation="load_with_dependencies")

        deps = graph.get(skill_id)
        if deps is None:
            return

        visiting.append(skill_id)
        for dep_id in deps:
            self._check_circular_dependency(dep_id, graph, visiting)
        visiting.pop()

    async def _activate(self, skill: Skill, config: LoadConfig) -> None:
        try:
            await skill.load(config)
        except SkillError as e:
            logger.warning("skill_load_failed", skill_id=skill.id, error=str(e))
            raise
        except Exception as e:
            logger.warning("skill_load_failed", skill_id=skill.id, error=str(e))
            raise SkillLoadError(skill.id, e) from e

        with self._lock:
            self._loaded[skill.id] = True
        logger.info("skill_loaded", skill_id=skill.id, lazy=config.lazy)

    async def _deactivate(self, skill: Skill) -> None:
        try:
            await skill.unload()
        except SkillError as e:
            logger.warning("skill_unload_failed", skill_id=skill.id, error=str(e))
            raise
        except Exception as e:
            logger.warning("skill_unload_failed", skill_id=skill.id, error=str(e))
            raise SkillUnloadError(skill.id, e) from e

        with self._lock:
            self._loaded.pop(skill.id, None)
        logger.info("skill_unloaded", skill_id=skill.id)

    # ─── Queries ─────────────────────────────────────────────────

    def get(self, skill_id: str) -> Skill:
        """Get a registered skill.

        Raises:
            SkillNotFoundError: If the skill is not registered.
        """
        with self._lock:
            skill = self._skills.get(skill_id)
        if skill is None:
            raise SkillNotFoundError(skill_id)
        return skill

    def list_skills(self) -> List[Skill]:
        """List all registered skills in registration order."""
        with self._lock:
            return list(self._skills.values())

    def list_loaded(self) -> List[Skill]:
        """List active skills in registration order."""
        with self._lock:
            return [skill for skill_id, skill in self._skills.items() if self._loaded.get(skill_id)]

    def find_by_category(self, category: SkillCategory) -> List[Skill]:
        """List registered skills in ``category``."""
        category = SkillCategory(category)
        with self._lock:
            return [skill for skill in self._skills.values() if skill.category == category]

    def find_by_tags(self, tags: Iterable[str]) -> List[Skill]:
        """List registered skills carrying at least one of ``tags``."""
        wanted = set(tags)
        if not wanted:
            return []
        with self._lock:
            return [skill for skill in self._skills.values() if wanted.intersection(skill.tags)]

    def is_loaded(self, skill_id: str) -> bool:
        with self._lock:
            return self._loaded.get(skill_id, False)

    def count(self) -> int:
        with self._lock:
            return len(self._skills)

    def loaded_count(self) -> int:
        with self._lock:
            return sum(1 for loaded in self._loaded.values() if loaded)

    def __repr__(self) -> str:
        """Return a string representation of the manager."""
        return f"<{self.__class__.__name__} registered={self.count()} loaded={self.loaded_count()}>"
