"""Unit tests for the upload state machine."""
import pytest

from src.domain.enums.upload_status import UploadStatus
from src.domain.state_machine.upload_state_machine import (
    InvalidUploadTransitionError,
    UploadStateMachine,
)


@pytest.fixture()
def sm() -> UploadStateMachine:
    return UploadStateMachine()


class TestValidTransitions:
    def test_idle_to_uploading(self, sm: UploadStateMachine) -> None:
        assert sm.can_transition(UploadStatus.IDLE, UploadStatus.UPLOADING) is True

    def test_uploading_progress_update(self, sm: UploadStateMachine) -> None:
        assert sm.can_transition(UploadStatus.UPLOADING, UploadStatus.UPLOADING) is True

    def test_uploading_to_uploaded(self, sm: UploadStateMachine) -> None:
        assert sm.can_transition(UploadStatus.UPLOADING, UploadStatus.UPLOADED) is True

    def test_uploading_to_failed(self, sm: UploadStateMachine) -> None:
        assert sm.can_transition(UploadStatus.UPLOADING, UploadStatus.FAILED) is True

    def test_failed_to_uploading(self, sm: UploadStateMachine) -> None:
        assert sm.can_transition(UploadStatus.FAILED, UploadStatus.UPLOADING) is True


class TestInvalidTransitions:
    def test_idle_cannot_complete_without_uploading(self, sm: UploadStateMachine) -> None:
        assert sm.can_transition(UploadStatus.IDLE, UploadStatus.UPLOADED) is False
        assert sm.can_transition(UploadStatus.IDLE, UploadStatus.FAILED) is False

    def test_failed_cannot_jump_to_uploaded(self, sm: UploadStateMachine) -> None:
        assert sm.can_transition(UploadStatus.FAILED, UploadStatus.UPLOADED) is False

    def test_uploaded_is_terminal(self, sm: UploadStateMachine) -> None:
        for state in UploadStatus:
            assert sm.can_transition(UploadStatus.UPLOADED, state) is False


class TestValidateTransition:
    def test_valid_transition_does_not_raise(self, sm: UploadStateMachine) -> None:
        sm.validate_transition(UploadStatus.IDLE, UploadStatus.UPLOADING)  # no exception

    def test_invalid_transition_raises(self, sm: UploadStateMachine) -> None:
        with pytest.raises(InvalidUploadTransitionError) as exc_info:
            sm.validate_transition(UploadStatus.UPLOADED, UploadStatus.UPLOADING)
        assert "UPLOADED" in str(exc_info.value)
        assert exc_info.value.from_state is UploadStatus.UPLOADED
        assert exc_info.value.to_state is UploadStatus.UPLOADING


class TestStatusFlags:
    def test_only_uploaded_is_terminal(self) -> None:
        assert [s for s in UploadStatus if s.is_terminal] == [UploadStatus.UPLOADED]

    def test_settled_states(self) -> None:
        assert UploadStatus.FAILED.is_settled is True
        assert UploadStatus.UPLOADED.is_settled is True
        assert UploadStatus.UPLOADING.is_settled is False

    def test_uploaded_has_no_transitions(self, sm: UploadStateMachine) -> None:
        assert sm.get_allowed_transitions(UploadStatus.UPLOADED) == frozenset()
