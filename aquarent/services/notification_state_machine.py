"""
Notification state machine for managing status transitions
"""

from typing import Dict, List, Set

from aquarent.core.exceptions import InvalidTransitionError
from aquarent.models.notification import NotificationStatus

class NotificationStateMachine:
    """
    Manages valid notification status transitions

    Only pending notifications move, and only to a terminal state.
    """

    def __init__(self):
        self.transitions: Dict[NotificationStatus, Set[NotificationStatus]] = {
            NotificationStatus.PENDING: {
                NotificationStatus.SENT,
                NotificationStatus.FAILED
            },
            NotificationStatus.SENT: set(),  # Terminal state
            NotificationStatus.FAILED: set()  # Terminal state
        }

    def can_transition(
        self,
        current_status: NotificationStatus,
        new_status: NotificationStatus
    ) -> bool:
        """
        Check if transition is valid

        Args:
            current_status: Current notification status
            new_status: Desired new status

        Returns:
            True if transition is allowed
        """
        valid_transitions = self.transitions.get(NotificationStatus(current_status), set())
        return NotificationStatus(new_status) in valid_transitions

    def ensure_transition(
        self,
        current_status: NotificationStatus,
        new_status: NotificationStatus
    ) -> None:
        """Raise InvalidTransitionError unless the transition is valid"""
        if not self.can_transition(current_status, new_status):
            raise InvalidTransitionError(
                NotificationStatus(current_status).value,
                NotificationStatus(new_status).value
            )

    def get_valid_transitions(self, current_status: NotificationStatus) -> List[NotificationStatus]:
        return list(self.transitions.get(NotificationStatus(current_status), set()))

    def is_terminal_state(self, status: NotificationStatus) -> bool:
        """True if no more transitions are possible"""
        return len(self.transitions.get(NotificationStatus(status), set())) == 0

    def initial_status(self, deferred: bool) -> NotificationStatus:
        """
        Status a new notification is created with

        Immediate notifications are written as sent before fan-out runs;
        only deferred ones pass through pending.
        """
        return NotificationStatus.PENDING if deferred else NotificationStatus.SENT

notification_state_machine = NotificationStateMachine()
