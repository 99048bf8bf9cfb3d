"""
Change classification for canvas deltas.

Decides whether a batch coming from the canvas starts a new timeline entry
(DISCRETE) or is folded into the active one (CONTINUOUS). A drag gesture
produces exactly one entry: its first frame is discrete, every later frame up
to and including the pointer release is continuous.
"""

import logging
from typing import Sequence

from src.models import Change, EditKind

logger = logging.getLogger(__name__)

STRUCTURAL_TYPES = {"add", "remove", "replace"}
COSMETIC_TYPES = {"select", "dimensions"}


class ChangeClassifier:
    """Tags change batches and tracks whether a drag gesture is open."""

    def __init__(self):
        self._gesture_open = False

    @property
    def gesture_open(self) -> bool:
        return self._gesture_open

    def reset(self) -> None:
        """Forget any open gesture (after undo, redo or import)."""
        self._gesture_open = False

    def classify(self, node_changes: Sequence[Change] = (), edge_changes: Sequence[Change] = ()) -> EditKind:
        changes = list(node_changes) + list(edge_changes)
        if not changes:
            return EditKind.CONTINUOUS

        if any(c.type in STRUCTURAL_TYPES for c in changes):
            self._gesture_open = False
            return EditKind.DISCRETE

        moves = [c for c in changes if c.type == "position"]
        if not moves:
            # selection and measurement never get their own undo step
            return EditKind.CONTINUOUS

        if any(c.dragging for c in moves):
            if self._gesture_open:
                return EditKind.CONTINUOUS
            self._gesture_open = True
            logger.debug("Drag gesture started")
            return EditKind.DISCRETE

        if any(c.dragging is False for c in moves):
            # pointer release: fold the final position into the gesture entry
            was_open = self._gesture_open
            self._gesture_open = False
            if was_open:
                logger.debug("Drag gesture ended")
                return EditKind.CONTINUOUS
            return EditKind.DISCRETE

        # a move with no dragging flag (keyboard nudge) is its own step
        return EditKind.CONTINUOUS if self._gesture_open else EditKind.DISCRETE
