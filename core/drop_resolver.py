# core/drop_resolver.py

"""Classifies where a dragged menu would land from the pointer position over a row."""

from typing import Optional

BEFORE = "before"
AFTER = "after"
INSIDE = "inside"
POSITIONS = (BEFORE, AFTER, INSIDE)

# Top 30% / middle 40% / bottom 30% of the hovered row.
BEFORE_THRESHOLD = 0.3
AFTER_THRESHOLD = 0.7


def resolve_drop_position(pointer_offset_y: float, row_height: float) -> Optional[str]:
    """
    Maps the vertical pointer offset inside a row to a drop position.

    Returns BEFORE for the top band, AFTER for the bottom band and INSIDE for
    the wider middle band. Returns None when the row has no height.
    """
    if row_height is None or row_height <= 0:
        return None

    if pointer_offset_y < row_height * BEFORE_THRESHOLD:
        return BEFORE
    if pointer_offset_y > row_height * AFTER_THRESHOLD:
        return AFTER
    return INSIDE


class DropResolver:
    """
    Per-gesture wrapper around resolve_drop_position().

    Remembers the last position only so the view can skip repainting the
    drop indicator when nothing changed.
    """

    def __init__(self):
        self.last_position: Optional[str] = None
        self.last_target_id = None
        self.changed = False

    def resolve(self, dragged_id, hovered_id, pointer_offset_y: float, row_height: float) -> Optional[str]:
        if hovered_id is None or hovered_id == dragged_id:
            position = None
        else:
            position = resolve_drop_position(pointer_offset_y, row_height)

        self.changed = (position != self.last_position or hovered_id != self.last_target_id)
        self.last_position = position
        self.last_target_id = hovered_id
        return position

    def reset(self):
        self.changed = self.last_position is not None
        self.last_position = None
        self.last_target_id = None
