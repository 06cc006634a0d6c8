"""Block-nesting tracker controlling emitted indentation."""

from __future__ import annotations

from ..core.errors import StructuralError


class BlockTracker:
    """
    Depth counter for open ``if`` / ``for`` blocks.

    The emitted indentation is one unit per level on top of ``base_depth``
    (the body of ``main`` sits one level in). Closing a block that was never
    opened raises :class:`StructuralError` instead of going negative.
    """

    def __init__(self, unit: str = "    ", base_depth: int = 1):
        self.unit = unit
        self.base_depth = base_depth
        self.depth = 0

    @property
    def prefix(self) -> str:
        return self.unit * (self.base_depth + self.depth)

    def push(self) -> None:
        self.depth += 1

    def pop(self, keyword: str) -> None:
        if self.depth == 0:
            raise StructuralError(keyword)
        self.depth -= 1

    @property
    def balanced(self) -> bool:
        return self.depth == 0
