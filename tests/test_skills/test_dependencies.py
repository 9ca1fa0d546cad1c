"""Unit tests for dependency resolution in SkillManager."""

import pytest

from skill_runtime.core.skills.base import BaseSkill
from skill_runtime.core.skills.errors import (
    CircularDependencyError,
    DependencyDepthExceededError,
    DependencyNotMetError,
    SkillAlreadyLoadedError,
    SkillLoadError,
    SkillNotFoundError,
)
from skill_runtime.core.skills.manager import SkillManager


@pytest.fixture
def manager():
    """Create an empty skill manager."""
    return SkillManager()


class TestLoadOrder:
    """Tests for dependency-first activation."""

    @pytest.mark.asyncio
    async def test_dependency_loaded_first(self, manager, make_skill, load_log):
        """Test base is activated before advanced."""
        manager.register(make_skill("base"))
        manager.register(make_skill("advanced", dependencies=["base"]))

        await manager.load_with_dependencies("advanced")

        assert load_log == ["load:base", "load:advanced"]
        assert manager.is_loaded("base") is True
        assert manager.is_loaded("advanced") is True

    @pytest.mark.asyncio
    async def test_registration_order_does_not_matter(self, manager, make_skill, load_log):
        """Test a dependent can be registered before its dependency."""
        manager.register(make_skill("advanced", dependencies=["base"]))
        manager.register(make_skill("base"))

        await manager.load_with_dependencies("advanced")

        assert load_log == ["load:base", "load:advanced"]

    @pytest.mark.asyncio
    async def test_transitive_chain(self, manager, make_skill, load_log):
        """Test a chain is activated leaves first."""
        manager.register(make_skill("a", dependencies=["b"]))
        manager.register(make_skill("b", dependencies=["c"]))
        manager.register(make_skill("c"))

        await manager.load_with_dependencies("a")

        assert load_log == ["load:c", "load:b", "load:a"]

    @pytest.mark.asyncio
    async def test_diamond_loads_shared_dependency_once(self, manager, make_skill, load_log):
        """Test a dependency shared by two branches is activated once."""
        manager.register(make_skill("top", dependencies=["left", "right"]))
        manager.register(make_skill("left", dependencies=["shared"]))
        manager.register(make_skill("right", dependencies=["shared"]))
        manager.register(make_skill("shared"))

        await manager.load_with_dependencies("top")

        assert load_log == ["load:shared", "load:left", "load:right", "load:top"]
        assert manager.loaded_count() == 4

    @pytest.mark.asyncio
    async def test_shared_dependency_across_calls(self, manager, make_skill, load_log):
        """Test resolving two skills that share a dependency activates it once."""
        manager.register(make_skill("a", dependencies=["c"]))
        manager.register(make_skill("b", dependencies=["c"]))
        manager.register(make_skill("c"))

        await manager.load_with_dependencies("a")
        await manager.load_with_dependencies("b")

        assert load_log.count("load:c") == 1
        assert load_log == ["load:c", "load:a", "load:b"]
        assert manager.loaded_count() == len(manager.list_loaded()) == 3

    @pytest.mark.asyncio
    async def test_active_dependency_is_skipped(self, manager, make_skill, load_log):
        """Test an already active dependency is not loaded again."""
        manager.register(make_skill("base"))
        manager.register(make_skill("advanced", dependencies=["base"]))
        await manager.load("base")

        await manager.load_with_dependencies("advanced")

        assert load_log == ["load:base", "load:advanced"]

    @pytest.mark.asyncio
    async def test_no_dependencies(self, manager, make_skill, load_log):
        """Test a skill without dependencies behaves like load."""
        manager.register(make_skill("solo"))

        await manager.load_with_dependencies("solo")

        assert load_log == ["load:solo"]


class TestCycles:
    """Tests for circular dependency detection."""

    @pytest.mark.asyncio
    async def test_two_skill_cycle(self, manager, make_skill, load_log):
        """Test a <-> b is rejected and nothing is activated."""
        manager.register(make_skill("a", dependencies=["b"]))
        manager.register(make_skill("b", dependencies=["a"]))

        with pytest.raises(CircularDependencyError) as exc_info:
            await manager.load_with_dependencies("a")

        assert exc_info.value.path == ["a", "b", "a"]
        assert "a -> b -> a" in str(exc_info.value)
        assert load_log == []
        assert manager.loaded_count() == 0

    @pytest.mark.asyncio
    async def test_self_dependency(self, manager, make_skill, load_log):
        """Test a skill depending on itself is rejected."""
        manager.register(make_skill("loop", dependencies=["loop"]))

        with pytest.raises(CircularDependencyError) as exc_info:
            await manager.load_with_dependencies("loop")

        assert exc_info.value.path == ["loop", "loop"]
        assert load_log == []

    @pytest.mark.asyncio
    async def test_cycle_below_root(self, manager, make_skill, load_log):
        """Test a cycle deeper in the graph is reported with its own path."""
        manager.register(make_skill("root", dependencies=["x"]))
        manager.register(make_skill("x", dependencies=["y"]))
        manager.register(make_skill("y", dependencies=["x"]))

        with pytest.raises(CircularDependencyError) as exc_info:
            await manager.load_with_dependencies("root")

        assert exc_info.value.path == ["x", "y", "x"]
        assert load_log == []

    @pytest.mark.asyncio
    async def test_diamond_is_not_a_cycle(self, manager, make_skill):
        """Test revisiting a node through a second branch is allowed."""
        manager.register(make_skill("top", dependencies=["left", "right"]))
        manager.register(make_skill("left", dependencies=["shared"]))
        manager.register(make_skill("right", dependencies=["shared"]))
        manager.register(make_skill("shared"))

        await manager.load_with_dependencies("top")

        assert manager.is_loaded("top") is True

    @pytest.mark.asyncio
    async def test_plain_load_ignores_cycles(self, manager, make_skill, load_log):
        """Test load does not resolve dependencies, so cycles are not checked."""
        manager.register(make_skill("a", dependencies=["b"]))
        manager.register(make_skill("b", dependencies=["a"]))

        await manager.load("a")

        assert load_log == ["load:a"]


class TestMissingAndFailing:
    """Tests for missing dependencies and hook failures."""

    @pytest.mark.asyncio
    async def test_unknown_target(self, manager):
        """Test resolving an unregistered skill raises SkillNotFoundError."""
        with pytest.raises(SkillNotFoundError):
            await manager.load_with_dependencies("ghost")

    @pytest.mark.asyncio
    async def test_missing_dependency(self, manager, make_skill, load_log):
        """Test a missing dependency is reported with the skill requiring it."""
        manager.register(make_skill("advanced", dependencies=["missing"]))

        with pytest.raises(DependencyNotMetError) as exc_info:
            await manager.load_with_dependencies("advanced")

        assert exc_info.value.skill_id == "missing"
        assert exc_info.value.required_by == "advanced"
        assert load_log == []
        assert manager.is_loaded("advanced") is False

    @pytest.mark.asyncio
    async def test_missing_transitive_dependency(self, manager, make_skill):
        """Test the immediate dependent is reported for a missing leaf."""
        manager.register(make_skill("a", dependencies=["b"]))
        manager.register(make_skill("b", dependencies=["c"]))

        with pytest.raises(DependencyNotMetError) as exc_info:
            await manager.load_with_dependencies("a")

        assert exc_info.value.skill_id == "c"
        assert exc_info.value.required_by == "b"

    @pytest.mark.asyncio
    async def test_failure_keeps_earlier_dependencies_active(self, manager, make_skill, load_log):
        """Test dependencies activated before a failure stay active."""

        async def on_load(config):
            raise RuntimeError("boom")

        manager.register(make_skill("first"))
        manager.register(BaseSkill(id="second", on_load=on_load))
        manager.register(make_skill("target", dependencies=["first", "second"]))

        with pytest.raises(SkillLoadError) as exc_info:
            await manager.load_with_dependencies("target")

        assert exc_info.value.skill_id == "second"
        assert manager.is_loaded("first") is True
        assert manager.is_loaded("second") is False
        assert manager.is_loaded("target") is False
        assert load_log == ["load:first"]

    @pytest.mark.asyncio
    async def test_target_already_loaded(self, manager, make_skill, load_log):
        """Test resolving an active target raises after its dependencies are ensured."""
        manager.register(make_skill("base"))
        manager.register(make_skill("advanced", dependencies=["base"]))
        await manager.load("advanced")

        with pytest.raises(SkillAlreadyLoadedError):
            await manager.load_with_dependencies("advanced")

        assert load_log == ["load:advanced", "load:base"]

    @pytest.mark.asyncio
    async def test_depth_limit(self, make_skill):
        """Test chains longer than the configured depth are rejected."""
        manager = SkillManager(max_dependency_depth=3)
        for i in range(5):
            manager.register(make_skill(f"s{i}", dependencies=[f"s{i + 1}"] if i < 4 else []))

        with pytest.raises(DependencyDepthExceededError):
            await manager.load_with_dependencies("s0")

        assert manager.loaded_count() == 0

    @pytest.mark.asyncio
    async def test_chain_within_depth_limit(self, make_skill, load_log):
        """Test a chain exactly at the depth limit is accepted."""
        manager = SkillManager(max_dependency_depth=3)
        manager.register(make_skill("s0", dependencies=["s1"]))
        manager.register(make_skill("s1", dependencies=["s2"]))
        manager.register(make_skill("s2", dependencies=["s3"]))
        manager.register(make_skill("s3"))

        await manager.load_with_dependencies("s0")

        assert load_log == ["load:s3", "load:s2", "load:s1", "load:s0"]

    @pytest.mark.asyncio
    async def test_zero_depth_allows_only_standalone_skills(self, make_skill, load_log):
        """Test an explicit depth of zero rejects any dependency edge."""
        manager = SkillManager(max_dependency_depth=0)
        manager.register(make_skill("solo"))
        manager.register(make_skill("base"))
        manager.register(make_skill("advanced", dependencies=["base"]))

        await manager.load_with_dependencies("solo")
        with pytest.raises(DependencyDepthExceededError):
            await manager.load_with_dependencies("advanced")

        assert load_log == ["load:solo"]
