"""Base interface that every scheduling pass implements."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .context import GenerationContext


class SchedulingPass(ABC):
    """
    One step of the generation pipeline.

    Passes run in a fixed order over a shared ``GenerationContext``; earlier
    passes take precedence because later ones see their assignments as
    existing commitments.
    """

    name: str | None = None  # Override in subclasses (e.g., "locked", "greedy")

    @abstractmethod
    def run(self, ctx: GenerationContext) -> None:
        """
        Add assignments, conflicts or warnings to ``ctx``.

        Args:
            ctx: GenerationContext for the week being built

        Passes never raise for unsatisfiable input; they record a conflict
        or warning instead.
        """
        pass

    def get_pass_name(self) -> str:
        """Get the name used in log lines."""
        return self.name or type(self).__name__
