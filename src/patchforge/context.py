"""Per-run build context: a typed registry of state objects."""

from __future__ import annotations

import logging
from typing import TypeVar, cast

from .errors import MissingContextError

logger = logging.getLogger(__name__)


class ContextObject:
    """Base class for state published to a BuildContext."""


T = TypeVar("T", bound=ContextObject)


class BuildContext:
    """Runtime state passed through the build pipeline.

    Holds at most one instance per ContextObject subclass. Tasks publish
    their results with ``set`` and read earlier results with ``get``.
    """

    def __init__(self) -> None:
        self._objects: dict[type[ContextObject], ContextObject] = {}

    def set(self, obj: ContextObject) -> None:
        """Store ``obj`` under its own type, replacing any previous instance."""
        if not isinstance(obj, ContextObject):
            raise TypeError(f"not a context object: {type(obj).__name__}")
        kind = type(obj)
        if kind in self._objects:
            logger.debug("Replacing context object %s", kind.__name__)
        self._objects[kind] = obj

    def get(self, kind: type[T]) -> T:
        """Return the instance of ``kind``; raises MissingContextError if absent."""
        obj = self._objects.get(kind)
        if obj is None:
            raise MissingContextError(kind.__name__)
        return cast(T, obj)

    def has(self, kind: type[ContextObject]) -> bool:
        return kind in self._objects

    def clear(self) -> None:
        """Drop every context object."""
        self._objects.clear()

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, kind: object) -> bool:
        return kind in self._objects

    def __repr__(self) -> str:
        kinds = ", ".join(k.__name__ for k in self._objects)
        return f"BuildContext({kinds})"
