# core/drag_state.py

"""
Drag gesture state machine.

States: IDLE -> DRAGGING(dragged) -> HOVERING(dragged, target, position).
All transitions are pure functions returning a new DragState, so the gesture
logic can be tested without a widget. A transition that does not apply to the
current state returns that state unchanged.
"""

from typing import Optional, Tuple

IDLE = "idle"
DRAGGING = "dragging"
HOVERING = "hovering"


class DragIntent:
    """What a drop would do: move ``dragged_id`` to ``position`` of ``target_id``."""

    def __init__(self, dragged_id, target_id, position: str):
        self.dragged_id = dragged_id
        self.target_id = target_id
        self.position = position

    def __eq__(self, other):
        if not isinstance(other, DragIntent):
            return NotImplemented
        return (self.dragged_id, self.target_id, self.position) == (other.dragged_id, other.target_id, other.position)

    def __repr__(self):
        return f"DragIntent(dragged_id={self.dragged_id!r}, target_id={self.target_id!r}, position={self.position!r})"


class DragState:
    __slots__ = ("kind", "dragged_id", "target_id", "position")

    def __init__(self, kind=IDLE, dragged_id=None, target_id=None, position=None):
        self.kind = kind
        self.dragged_id = dragged_id
        self.target_id = target_id
        self.position = position

    @property
    def is_idle(self) -> bool:
        return self.kind == IDLE

    def __eq__(self, other):
        if not isinstance(other, DragState):
            return NotImplemented
        return ((self.kind, self.dragged_id, self.target_id, self.position)
                == (other.kind, other.dragged_id, other.target_id, other.position))

    def __repr__(self):
        return (f"DragState({self.kind}, dragged_id={self.dragged_id!r}, "
                f"target_id={self.target_id!r}, position={self.position!r})")


IDLE_STATE = DragState()


def start_drag(state: DragState, dragged_id) -> DragState:
    if not state.is_idle or dragged_id is None:
        return state
    return DragState(DRAGGING, dragged_id)


def hover(state: DragState, target_id, position: Optional[str]) -> DragState:
    """
    Pointer moved over ``target_id`` (None: the empty area below the last
    root menu). A None position or hovering the dragged menu itself means
    there is no valid drop.
    """
    if state.is_idle:
        return state
    if position is None or (target_id is not None and target_id == state.dragged_id):
        return DragState(DRAGGING, state.dragged_id)
    return DragState(HOVERING, state.dragged_id, target_id, position)


def leave(state: DragState) -> DragState:
    if state.kind != HOVERING:
        return state
    return DragState(DRAGGING, state.dragged_id)


def drop(state: DragState) -> Tuple[DragState, Optional[DragIntent]]:
    """Ends the gesture. Only a HOVERING state yields an intent."""
    if state.kind != HOVERING:
        return IDLE_STATE, None
    return IDLE_STATE, DragIntent(state.dragged_id, state.target_id, state.position)


def cancel(state: DragState) -> DragState:
    return IDLE_STATE
