"""
Recipe table and working queue.

RECIPE is the master template: the physical steps of one waffle, each with
the status line the display shows while it runs. RecipeQueue is the
orchestrator's working copy, consumed front to back and refilled on reset.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Sequence, Tuple


@dataclass(frozen=True)
class RecipeStep:
    """One physical action and its display status."""

    action: str
    status_text: str
    display_color: str


RECIPE: Tuple[RecipeStep, ...] = (
    RecipeStep("open_lid", "Opening lid...", "yellow"),
    RecipeStep("deploy_dispenser", "Deploying dispenser...", "yellow"),
    RecipeStep("dispense", "Dispensing batter...", "green"),
    RecipeStep("retract_dispenser", "Retracting dispenser...", "blue"),
    RecipeStep("close_lid", "Closing lid...", "blue"),
    RecipeStep("flip_iron", "Flipping waffle...", "yellow"),
    RecipeStep("cooking_timer", "Cooking...", "red"),
    RecipeStep("flip_iron_back", "Flipping waffle...", "blue"),
    RecipeStep("finish", "Opening lid...", "yellow"),
)


class RecipeExhaustedError(Exception):
    """Raised when popping from an empty recipe queue"""
    pass


class RecipeQueue:
    """
    Working copy of a recipe template.

    The template is held by reference and never mutated; the queue holds
    its own copy of the step sequence.
    """

    def __init__(self, template: Sequence[RecipeStep] = RECIPE):
        self.template = template
        self._steps: Deque[RecipeStep] = deque(template)

    def pop_front(self) -> RecipeStep:
        """
        Remove and return the next step.

        Raises:
            RecipeExhaustedError: If the queue is empty
        """
        if not self._steps:
            raise RecipeExhaustedError("Recipe queue is empty; reset required")
        return self._steps.popleft()

    def refill(self) -> None:
        """Replace the contents with a fresh copy of the template."""
        self._steps = deque(self.template)

    @property
    def is_empty(self) -> bool:
        return not self._steps

    def __len__(self) -> int:
        return len(self._steps)
