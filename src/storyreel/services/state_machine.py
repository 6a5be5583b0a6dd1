"""Job state machine logic for managing valid job state transitions."""
from typing import Set, Dict
from storyreel.core.enums import JobStatus
from storyreel.core.exceptions import InvalidStateTransitionError


class JobStateMachine:
    """
    Defines valid state transitions for jobs and fan-out tasks.

    State Diagram:
        PENDING → RUNNING → COMPLETED/FAILED/CANCELLED
           ↓
        CANCELLED

    Terminal states are sticky: nothing leaves them.
    """

    # Define valid transitions as a mapping from current state to allowed next states
    TRANSITIONS: Dict[JobStatus, Set[JobStatus]] = {
        JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.CANCELLED},
        JobStatus.RUNNING: {
            JobStatus.COMPLETED,
            JobStatus.FAILED,
            JobStatus.CANCELLED,
        },
        JobStatus.COMPLETED: set(),  # Terminal state
        JobStatus.FAILED: set(),  # Terminal state
        JobStatus.CANCELLED: set(),  # Terminal state
    }

    TERMINAL_STATES = {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}

    @classmethod
    def can_transition(cls, from_state: JobStatus, to_state: JobStatus) -> bool:
        """
        Check if transition from from_state to to_state is valid.

        Args:
            from_state: Current job status
            to_state: Desired job status

        Returns:
            bool: True if transition is valid, False otherwise
        """
        return to_state in cls.TRANSITIONS.get(from_state, set())

    @classmethod
    def validate_transition(cls, from_state: JobStatus, to_state: JobStatus) -> None:
        """
        Validate state transition and raise exception if invalid.

        Args:
            from_state: Current job status
            to_state: Desired job status

        Raises:
            InvalidStateTransitionError: If transition is not valid
        """
        if not cls.can_transition(from_state, to_state):
            raise InvalidStateTransitionError(
                f"Invalid state transition: {from_state} -> {to_state}"
            )

    @classmethod
    def is_terminal(cls, state: JobStatus) -> bool:
        """
        Check if state is terminal (no further transitions possible).

        Args:
            state: Job status to check

        Returns:
            bool: True if terminal state, False otherwise
        """
        return state in cls.TERMINAL_STATES
