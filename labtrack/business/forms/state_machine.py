"""
State machines for request form approval

Encodes valid transitions and who may perform them.
Keeps "what is allowed" separate from "how persistence occurs".
"""

from typing import Dict, Set, Tuple
from labtrack.business.core.errors import LabTransitionError, LabAuthorizationError


class FormStateMachine:
    """
    Base approval workflow shared by all request forms.

    Pending -> Custodian_Approved -> Admin_Approved, with Rejected reachable from
    the first two. There are no same-state no-ops: approving an already approved
    form is an invalid transition.
    """

    PENDING = 'Pending'
    CUSTODIAN_APPROVED = 'Custodian_Approved'
    ADMIN_APPROVED = 'Admin_Approved'
    REJECTED = 'Rejected'

    # Role names that may act on a transition
    CUSTODIAN = 'Custodian'
    ADMIN = 'Admin'

    TRANSITIONS: Dict[str, Set[str]] = {
        PENDING: {CUSTODIAN_APPROVED, REJECTED},
        CUSTODIAN_APPROVED: {ADMIN_APPROVED, REJECTED},
    }

    # (from_status, to_status) -> roles allowed to perform it
    AUTHORITY: Dict[Tuple[str, str], Set[str]] = {
        (PENDING, CUSTODIAN_APPROVED): {CUSTODIAN},
        (PENDING, REJECTED): {CUSTODIAN},
        (CUSTODIAN_APPROVED, ADMIN_APPROVED): {ADMIN},
        (CUSTODIAN_APPROVED, REJECTED): {ADMIN},
    }

    @classmethod
    def terminal_states(cls) -> Set[str]:
        targets = set().union(*cls.TRANSITIONS.values())
        return {state for state in targets if not cls.TRANSITIONS.get(state)}

    @classmethod
    def all_states(cls) -> Set[str]:
        return set(cls.TRANSITIONS) | set().union(*cls.TRANSITIONS.values())

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Raises:
            LabTransitionError: If the transition is not in the table
        """
        if not cls.can_transition(from_status, to_status):
            raise LabTransitionError(
                f"Invalid status transition: {from_status} → {to_status}",
                details=[{'from': from_status, 'to': to_status,
                          'allowed': sorted(cls.get_allowed_transitions(from_status))}]
            )

    @classmethod
    def validate_authority(cls, from_status: str, to_status: str, role: str) -> None:
        """
        Raises:
            LabAuthorizationError: If role may not perform the transition
        """
        roles = cls.AUTHORITY.get((from_status, to_status), set())
        if role not in roles:
            raise LabAuthorizationError(
                f"A {role} cannot move a form from {from_status} to {to_status}",
                details=[{'allowed_roles': sorted(roles)}]
            )

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        return set(cls.TRANSITIONS.get(from_status, set()))


class LabRequestStateMachine(FormStateMachine):
    """
    Lab usage request: an admin-approved request is marked Completed once the
    session is over.
    """

    COMPLETED = 'Completed'

    TRANSITIONS: Dict[str, Set[str]] = {
        **FormStateMachine.TRANSITIONS,
        FormStateMachine.ADMIN_APPROVED: {COMPLETED},
    }

    AUTHORITY = {
        **FormStateMachine.AUTHORITY,
        (FormStateMachine.ADMIN_APPROVED, COMPLETED): {FormStateMachine.CUSTODIAN, FormStateMachine.ADMIN},
    }


class EquipmentBorrowStateMachine(FormStateMachine):
    """Equipment borrow: an admin-approved borrow is closed when the items are Returned"""

    RETURNED = 'Returned'

    TRANSITIONS: Dict[str, Set[str]] = {
        **FormStateMachine.TRANSITIONS,
        FormStateMachine.ADMIN_APPROVED: {RETURNED},
    }

    AUTHORITY = {
        **FormStateMachine.AUTHORITY,
        (FormStateMachine.ADMIN_APPROVED, RETURNED): {FormStateMachine.CUSTODIAN, FormStateMachine.ADMIN},
    }


class SoftwareInstallationStateMachine(FormStateMachine):
    """
    Software installation: custodian approval is final, there is no admin step.
    """

    TRANSITIONS: Dict[str, Set[str]] = {
        FormStateMachine.PENDING: {FormStateMachine.CUSTODIAN_APPROVED, FormStateMachine.REJECTED},
    }

    AUTHORITY = {
        (FormStateMachine.PENDING, FormStateMachine.CUSTODIAN_APPROVED): {FormStateMachine.CUSTODIAN},
        (FormStateMachine.PENDING, FormStateMachine.REJECTED): {FormStateMachine.CUSTODIAN},
    }


STATE_MACHINES = {
    'lab-request': LabRequestStateMachine,
    'equipment-borrow': EquipmentBorrowStateMachine,
    'software-installation': SoftwareInstallationStateMachine,
}
