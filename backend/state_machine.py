from enum import Enum


class TransferState(str, Enum):
    VALIDATING = "VALIDATING"
    RELEASING = "RELEASING"
    CLAIMING = "CLAIMING"
    UPDATING_RESIDENT = "UPDATING_RESIDENT"
    LOGGING = "LOGGING"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"


VALID_TRANSITIONS: dict[TransferState, list[TransferState]] = {
    TransferState.VALIDATING: [TransferState.RELEASING, TransferState.ABORTED],
    TransferState.RELEASING: [TransferState.CLAIMING, TransferState.ABORTED],
    TransferState.CLAIMING: [TransferState.UPDATING_RESIDENT, TransferState.ABORTED],
    TransferState.UPDATING_RESIDENT: [TransferState.LOGGING, TransferState.ABORTED],
    TransferState.LOGGING: [TransferState.COMMITTED, TransferState.ABORTED],
}

INITIAL_STATE = TransferState.VALIDATING

TERMINAL_STATES: set[TransferState] = {TransferState.COMMITTED, TransferState.ABORTED}


def validate_transition(current_state: TransferState, new_state: TransferState) -> bool:
    """Validate and return True if transition is allowed, raise ValueError otherwise."""
    allowed = VALID_TRANSITIONS.get(current_state)
    if allowed is None:
        raise ValueError(f"No transitions from terminal state '{current_state.value}'")

    if new_state not in allowed:
        raise ValueError(
            f"Invalid transition: transfer cannot go from '{current_state.value}' to '{new_state.value}'. "
            f"Allowed: {[state.value for state in allowed]}"
        )

    return True


class TransferRun:
    """State of a single admit-or-transfer invocation. Never persisted."""

    def __init__(self, resident_id: int, to_bed_id: int):
        self.resident_id = resident_id
        self.to_bed_id = to_bed_id
        self.from_bed_id: int | None = None
        self.state = INITIAL_STATE
        self.history: list[TransferState] = [INITIAL_STATE]

    def advance(self, new_state: TransferState):
        validate_transition(self.state, new_state)
        self.state = new_state
        self.history.append(new_state)

    def abort(self):
        if self.state not in TERMINAL_STATES:
            self.advance(TransferState.ABORTED)

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES
