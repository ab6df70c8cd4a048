from src.domain.enums.upload_status import UploadStatus


# Mapping of valid transitions: from_state -> set of allowed to_states
VALID_TRANSITIONS: dict[UploadStatus, frozenset[UploadStatus]] = {
    UploadStatus.IDLE: frozenset({UploadStatus.UPLOADING}),
    # UPLOADING -> UPLOADING is a progress update within the same attempt
    UploadStatus.UPLOADING: frozenset(
        {UploadStatus.UPLOADING, UploadStatus.UPLOADED, UploadStatus.FAILED}
    ),
    UploadStatus.FAILED: frozenset({UploadStatus.UPLOADING}),
    # Terminal: a successful job must be removed and re-added to upload again
    UploadStatus.UPLOADED: frozenset(),
}


class InvalidUploadTransitionError(Exception):
    """Raised when an invalid upload state transition is attempted."""

    def __init__(self, from_state: UploadStatus, to_state: UploadStatus) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid transition from {from_state.value} to {to_state.value}. "
            f"Allowed transitions: {[s.value for s in VALID_TRANSITIONS.get(from_state, frozenset())]}"
        )


class UploadStateMachine:
    """
    Validates state transitions for a single image upload job.

    Stateless. Call validate_transition() with explicit states.
    """

    def can_transition(self, from_state: UploadStatus, to_state: UploadStatus) -> bool:
        """Return True if transitioning from_state → to_state is permitted."""
        if from_state.is_terminal:
            return False
        return to_state in VALID_TRANSITIONS.get(from_state, frozenset())

    def validate_transition(self, from_state: UploadStatus, to_state: UploadStatus) -> None:
        """Raise InvalidUploadTransitionError if the transition is not permitted."""
        if not self.can_transition(from_state, to_state):
            raise InvalidUploadTransitionError(from_state, to_state)

    def get_allowed_transitions(self, from_state: UploadStatus) -> frozenset[UploadStatus]:
        """Return the set of states reachable from from_state."""
        return VALID_TRANSITIONS.get(from_state, frozenset())
