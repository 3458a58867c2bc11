"""Permission mapping table model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, PrivateAttr


class PermissionTable(BaseModel):
    """Legacy permission -> target data actions, keyed by category then action.

    Immutable once built; share one instance across analyses.
    """

    model_config = ConfigDict(frozen=True)

    categories: dict[str, dict[str, list[str]]] = {}
    known_actions: tuple[str, ...] = ()

    _known_lower: frozenset[str] = PrivateAttr(default=frozenset())

    def model_post_init(self, __context) -> None:
        self._known_lower = frozenset(a.lower() for a in self.known_actions)

    @classmethod
    def from_categories(cls, categories: dict[str, dict[str, list[str]]]) -> "PermissionTable":
        """Build a table and its flattened known-action universe."""
        known: dict[str, None] = {}
        for actions_by_key in categories.values():
            for actions in actions_by_key.values():
                for action in actions:
                    known.setdefault(action, None)
        return cls(categories=categories, known_actions=tuple(known))

    def category(self, name: str) -> dict[str, list[str]] | None:
        return self.categories.get(name.lower())

    def is_known(self, action: str) -> bool:
        return action.lower() in self._known_lower
