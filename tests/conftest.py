"""Shared test fixtures for the test suite."""

import asyncio
import threading
from typing import (
    Any,
    Awaitable,
    Callable,
    List,
)

import pytest

from skill_runtime.core.skills.base import BaseSkill
from skill_runtime.core.skills.schema import SkillCategory


@pytest.fixture
def load_log() -> List[str]:
    """Record of load/unload hook calls, in call order."""
    return []


@pytest.fixture
def make_skill(load_log) -> Callable[..., BaseSkill]:
    """Build a BaseSkill whose hooks append ``load:<id>`` / ``unload:<id>`` to ``load_log``.

    ``delay`` makes each hook sleep first, so concurrent transitions overlap.
    """

    def _make(skill_id: str, dependencies=None, delay: float = 0.0, **fields) -> BaseSkill:
        async def on_load(config):
            await asyncio.sleep(delay)
            load_log.append(f"load:{skill_id}")

        async def on_unload():
            await asyncio.sleep(delay)
            load_log.append(f"unload:{skill_id}")

        fields.setdefault("name", skill_id.replace("-", " ").title())
        fields.setdefault("category", SkillCategory.GENERAL)
        return BaseSkill(
            id=skill_id,
            dependencies=dependencies or [],
            on_load=on_load,
            on_unload=on_unload,
            **fields,
        )

    return _make


@pytest.fixture
def run_in_threads() -> Callable[..., List[Any]]:
    """Run each coroutine factory on its own thread with its own event loop.

    Returns the results in call order, with raised exceptions in place of results.
    Fails the test if any thread is still running after ``timeout`` seconds.
    """

    def _run(*factories: Callable[[], Awaitable[Any]], stagger: float = 0.0, timeout: float = 10.0) -> List[Any]:
        results: List[Any] = [None] * len(factories)

        def worker(index: int, factory: Callable[[], Awaitable[Any]]) -> None:
            try:
                results[index] = asyncio.run(factory())
            except Exception as e:
                results[index] = e

        threads = [threading.Thread(target=worker, args=(i, f), daemon=True) for i, f in enumerate(factories)]
        for thread in threads:
            thread.start()
            if stagger:
                thread.join(stagger)
        for thread in threads:
            thread.join(timeout)

        assert not [t for t in threads if t.is_alive()], "lifecycle call did not complete"
        return results

    return _run


@pytest.fixture
def tmp_skills_dir(tmp_path) -> str:
    """Create a temporary skills root with sample skill directories."""
    root = tmp_path / "skills"
    root.mkdir()

    # Complete skill with instructions and resources
    coding = root / "coding"
    coding.mkdir()
    (coding / "SKILL.md").write_text(
        "---\n"
        "id: coding\n"
        "name: Coding Assistant\n"
        "description: Writes and debugs code\n"
        "category: coding\n"
        "tags: coding, debug\n"
        "dependencies: [base]\n"
        "version: 2.1.0\n"
        "author: Platform Team\n"
        "usage_guidelines: Use for programming tasks.\n"
        "limitations: No code execution.\n"
        "examples:\n"
        "  - input: Fix this loop\n"
        "    output: Use range(len(items))\n"
        "    reasoning: Off-by-one\n"
        "parameters:\n"
        "  required:\n"
        "    - name: code\n"
        "      type: string\n"
        "      description: Source code to analyze\n"
        "  optional:\n"
        "    - name: language\n"
        "      default: python\n"
        "---\n\n"
        "# Coding Skill\n\n"
        "You are an expert programmer.\n",
        encoding="utf-8",
    )
    (coding / "requirements.txt").write_text("black\n# comment\nruff\n", encoding="utf-8")
    (coding / "scripts").mkdir()
    (coding / "scripts" / "lint.py").write_text("print('lint')", encoding="utf-8")
    (coding / "templates").mkdir()
    (coding / "templates" / "review.md").write_text("## Review", encoding="utf-8")
    (coding / "config").mkdir()
    (coding / "config" / "rules.yaml").write_text("max_line: 119", encoding="utf-8")
    (coding / "data").mkdir()
    (coding / "data" / "blob.bin").write_bytes(b"\x00\x01\x02")

    # Minimal skill: id taken from the directory name, no resources
    base = root / "base"
    base.mkdir()
    (base / "SKILL.md").write_text(
        "---\n"
        "name: Base\n"
        "description: Shared helpers\n"
        "---\n\n"
        "Base prompt.\n",
        encoding="utf-8",
    )

    # Skill file without frontmatter (invalid)
    broken = root / "broken"
    broken.mkdir()
    (broken / "SKILL.md").write_text("# No Frontmatter\n", encoding="utf-8")

    # Unknown category (invalid)
    odd = root / "odd"
    odd.mkdir()
    (odd / "SKILL.md").write_text(
        "---\nname: Odd\ndescription: Bad category\ncategory: cooking\n---\nBody\n",
        encoding="utf-8",
    )

    # Frontmatter id that does not match its directory (skipped)
    mismatch = root / "mismatch"
    mismatch.mkdir()
    (mismatch / "SKILL.md").write_text(
        "---\nid: other\nname: Other\ndescription: Wrong directory\n---\nBody\n",
        encoding="utf-8",
    )

    # Directory without a skill file (ignored)
    (root / "empty").mkdir()
    (root / "readme.txt").write_text("Not a skill.\n", encoding="utf-8")

    return str(root)
