from __future__ import annotations


class SkillTreeError(Exception):
    """Base class for every error the engine raises."""


class InvalidInputError(SkillTreeError, ValueError):
    """Score, stars, amount or another argument is outside its domain."""


class NodeLockedError(InvalidInputError):
    """The node's prerequisites are not all completed yet."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"node {node_id!r} is locked")
        self.node_id = node_id


class NodeNotFoundError(SkillTreeError, LookupError):
    def __init__(self, node_id: str) -> None:
        super().__init__(f"node {node_id!r} is not in the catalog")
        self.node_id = node_id


class DataIntegrityError(SkillTreeError):
    """Catalog or stored state breaks a structural invariant."""


class ConcurrentUpdateError(SkillTreeError):
    """The stored learner state changed between load and save."""

    def __init__(self, learner_id: str, expected_version: int) -> None:
        super().__init__(
            f"learner {learner_id!r} was modified concurrently "
            f"(expected version {expected_version})"
        )
        self.learner_id = learner_id
        self.expected_version = expected_version
