"""
Editor state: the meeting being edited plus its action list.

Every update is a pure reducer returning a new MeetingState; MeetingStore
holds the current state and notifies subscribers after each change.
"""
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class MeetingState:
    current_meeting: Optional[Dict[str, Any]] = None
    actions: Tuple[Dict[str, Any], ...] = ()


# --- Reducers ---

def set_current_meeting(state: MeetingState, meeting: Dict[str, Any]) -> MeetingState:
    return replace(state, current_meeting=dict(meeting))


def update_meeting(state: MeetingState, updates: Dict[str, Any]) -> MeetingState:
    # No meeting open: nothing to update
    if state.current_meeting is None:
        return state
    return replace(state, current_meeting={**state.current_meeting, **updates})


def set_actions(state: MeetingState, actions: List[Dict[str, Any]]) -> MeetingState:
    return replace(state, actions=tuple(dict(a) for a in actions))


def add_action(state: MeetingState, action: Dict[str, Any]) -> MeetingState:
    return replace(state, actions=state.actions + (dict(action),))


def remove_action(state: MeetingState, action_id: str) -> MeetingState:
    return replace(state, actions=tuple(a for a in state.actions if a.get("id") != action_id))


def toggle_action(state: MeetingState, action_id: str) -> MeetingState:
    return replace(
        state,
        actions=tuple(
            {**a, "completed": not a.get("completed", False)} if a.get("id") == action_id else a
            for a in state.actions
        ),
    )


def clear_current(state: MeetingState) -> MeetingState:
    return MeetingState()


class MeetingStore:
    """Holds one MeetingState and applies reducers to it"""

    def __init__(self, state: Optional[MeetingState] = None):
        self.state = state or MeetingState()
        self._listeners: List[Callable[[MeetingState], None]] = []

    def subscribe(self, listener: Callable[[MeetingState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, reducer: Callable[..., MeetingState], *args) -> MeetingState:
        new_state = reducer(self.state, *args)
        if new_state is not self.state:
            self.state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self.state

    @property
    def current_meeting(self) -> Optional[Dict[str, Any]]:
        return self.state.current_meeting

    @property
    def actions(self) -> List[Dict[str, Any]]:
        return list(self.state.actions)
