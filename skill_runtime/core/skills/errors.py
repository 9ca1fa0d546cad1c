"""Exception classes for the skills subsystem."""

from typing import (
    List,
    Optional,
)


class SkillError(Exception):
    """Base exception for all skill-related errors.

    Attributes:
        skill_id: The skill the error refers to, if any.
        operation: The attempted operation (e.g. ``load``, ``unload``).
    """

    default_message = "skill error"

    def __init__(self, skill_id: Optional[str] = None, message: Optional[str] = None, operation: str = ""):
        self.skill_id = skill_id
        self.operation = operation
        if message is None:
            message = f"{self.default_message}: {skill_id}" if skill_id else self.default_message
        super().__init__(message)


class SkillNotFoundError(SkillError, LookupError):
    """Raised when a skill ID is not registered."""

    default_message = "skill not found"


class SkillAlreadyRegisteredError(SkillError):
    """Raised when registering a skill whose ID already exists."""

    default_message = "skill already registered"


class SkillAlreadyLoadedError(SkillError):
    """Raised when loading a skill that is already active."""

    default_message = "skill already loaded"


class SkillNotLoadedError(SkillError):
    """Raised when unloading a skill that is not active."""

    default_message = "skill not loaded"


SkillAlreadyUnloadedError = SkillNotLoadedError


class CircularDependencyError(SkillError):
    """Raised when a skill transitively depends on itself.

    Attributes:
        path: Skill IDs from the resolution root to the repeated ID.
    """

    default_message = "circular dependency"

    def __init__(self, skill_id: str, path: Optional[List[str]] = None):
        self.path = list(path or [])
        message = f"{self.default_message}: {' -> '.join(self.path)}" if self.path else None
        super().__init__(skill_id, message, operation="load_with_dependencies")


class DependencyNotMetError(SkillError):
    """Raised when a declared dependency is not registered at load time."""

    default_message = "dependency not met"

    def __init__(self, skill_id: str, required_by: Optional[str] = None):
        self.required_by = required_by
        message = None
        if required_by:
            message = f"{self.default_message}: {skill_id} (required by {required_by})"
        super().__init__(skill_id, message, operation="load_with_dependencies")


class DependencyDepthExceededError(SkillError):
    """Raised when a dependency chain is deeper than the configured limit."""

    default_message = "dependency depth exceeded"


class InvalidSkillConfigError(SkillError, ValueError):
    """Raised for a missing skill, an empty skill ID or invalid tool arguments."""

    default_message = "invalid skill config"


class SkillLoadError(SkillError):
    """Raised when a load hook or payload loader fails. The underlying error is chained."""

    default_message = "skill load failed"

    def __init__(self, skill_id: str, cause: BaseException, operation: str = "load"):
        super().__init__(skill_id, f"{operation} skill {skill_id} failed: {cause}", operation=operation)


class SkillUnloadError(SkillError):
    """Raised when an unload hook fails. The underlying error is chained."""

    default_message = "skill unload failed"

    def __init__(self, skill_id: str, cause: BaseException, operation: str = "unload"):
        super().__init__(skill_id, f"{operation} skill {skill_id} failed: {cause}", operation=operation)


class SkillActionNotSupportedError(SkillError, NotImplementedError):
    """Raised when an action is dispatched to a skill without an action handler."""

    default_message = "skill does not execute actions"


class SkillActionError(SkillError):
    """Raised when a skill's action handler fails. The underlying error is chained."""

    default_message = "skill action failed"

    def __init__(self, skill_id: str, action: str, cause: BaseException):
        self.action = action
        message = f"execute action {action!r} on skill {skill_id} failed: {cause}"
        super().__init__(skill_id, message, operation="execute_action")
