"""
FormManager - Domain service for request forms

Submission (portal, public page or one-time link), scoped listing, detail edits
and approval transitions via the form state machines.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Type
from labtrack import db
from labtrack.data.forms.form_request import FORM_MODELS, FormRequestBase
from labtrack.business.core.access_scope import CallerScope, ensure_lab_access, scope_to_caller
from labtrack.business.core.errors import LabValidationError, LabNotFoundError
from labtrack.business.core.quarter import parse_date
from labtrack.business.core.transaction import atomic
from labtrack.business.core.validation import clean_str, require_fields
from labtrack.business.forms.state_machine import STATE_MACHINES, FormStateMachine
from labtrack.business.users.lab_manager import LabManager
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.forms")

REQUIRED_FIELDS = {
    'lab-request': ('date', 'faculty_student_name'),
    'equipment-borrow': ('date', 'faculty_student_name', 'equipment_list'),
    'software-installation': ('date', 'faculty_name', 'software_list'),
}

DATE_FIELDS = ('date', 'feedback_date')


def form_model(form_type: str) -> Type[FormRequestBase]:
    model = FORM_MODELS.get(form_type)
    if model is None:
        raise LabNotFoundError(f"Unknown form type: {form_type}",
                               details=[{'allowed': sorted(FORM_MODELS)}])
    return model


def _clean_values(payload, fields) -> Dict[str, Any]:
    values = {}
    for field in fields:
        if field not in payload:
            continue
        if field in DATE_FIELDS:
            values[field] = parse_date(payload[field], field=field)
        else:
            values[field] = clean_str(payload[field])
    return values


class FormManager:
    """
    Domain service for lab requests, equipment borrows and software installations.

    Submissions need no caller. Reads, edits and transitions are scoped to the
    caller: custodians act only on forms of their own lab.
    """

    def __init__(self, caller: Optional[CallerScope] = None):
        self.caller = caller

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, form_type: str, payload: Dict[str, Any], lab_ref=None, submitted_via='portal'):
        """
        Create a Pending form assigned to the laboratory's custodian.

        Args:
            lab_ref: Lab id or name; falls back to payload lab_id, then laboratory
        """
        with atomic(f'{form_type} submission'):
            form = self.prepare(form_type, payload, lab_ref, submitted_via)
        logger.info(f"{form_type} {form.id} submitted via {submitted_via} for lab {form.lab_id}")
        return form

    def prepare(self, form_type: str, payload: Dict[str, Any], lab_ref=None, submitted_via='portal'):
        """Validate a submission and add the new form to the session without committing"""
        model = form_model(form_type)
        lab_ref = lab_ref if lab_ref not in (None, '') else (payload.get('lab_id') or payload.get('laboratory'))
        if lab_ref in (None, ''):
            raise LabValidationError("laboratory is required", details=[{'field': 'laboratory'}])
        lab = LabManager.resolve(lab_ref)
        if self.caller is not None:
            ensure_lab_access(self.caller, lab.id, action='file forms for')

        require_fields(payload, REQUIRED_FIELDS[form_type])
        values = _clean_values(payload, model.SUBMIT_FIELDS)

        custodian = lab.custodian
        form = model.from_dict(values, user_id=self.caller.user_id if self.caller else None)
        form.lab_id = lab.id
        form.status = FormStateMachine.PENDING
        form.submitted_via = submitted_via
        form.user_id = custodian.id if custodian else None
        form.monitored_by = custodian.full_name if custodian else None
        db.session.add(form)
        return form

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_forms(self, form_type: str, status=None, start_date=None, end_date=None, lab_id=None):
        model = form_model(form_type)
        query = scope_to_caller(model.query, model, self.caller)
        if status:
            query = query.filter(model.status == status)
        if lab_id:
            query = query.filter(model.lab_id == int(lab_id))
        start = parse_date(start_date, 'start_date')
        end = parse_date(end_date, 'end_date')
        if start:
            query = query.filter(model.date >= start)
        if end:
            query = query.filter(model.date <= end)
        return query.order_by(model.created_at.desc(), model.id.desc()).all()

    def get(self, form_type: str, form_id: int):
        model = form_model(form_type)
        form = db.session.get(model, form_id)
        if form is None:
            raise LabNotFoundError(f"{model.__name__} {form_id} not found")
        ensure_lab_access(self.caller, form.lab_id, action='view forms of')
        return form

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update_details(self, form_type: str, form_id: int, payload: Dict[str, Any]):
        """Edit the fields a custodian fills in after submission (time out, remarks...)"""
        form = self.get(form_type, form_id)
        values = _clean_values(payload, type(form).DETAIL_FIELDS)
        if not values:
            raise LabValidationError(
                "Nothing to update",
                details=[{'allowed': list(type(form).DETAIL_FIELDS)}]
            )
        with atomic(f'{form_type} update'):
            form.update_from_dict(values, user_id=self.caller.user_id)
        return form

    def transition(self, form_type: str, form_id: int, to_status: str, reason: Optional[str] = None):
        """
        Move a form to to_status.

        Lab scope, transition validity and role authority are all checked before
        the form is modified.

        Raises:
            LabAuthorizationError: Out-of-scope lab or a role without authority
            LabTransitionError: Transition not in the form's table
        """
        form = self.get(form_type, form_id)
        state_machine = STATE_MACHINES[form_type]
        to_status = clean_str(to_status)
        if not to_status:
            raise LabValidationError("status is required", details=[{'field': 'status'}])

        from_status = form.status
        state_machine.validate_transition(from_status, to_status)
        state_machine.validate_authority(from_status, to_status, self.caller.role)

        now = datetime.utcnow()
        with atomic(f'{form_type} status change'):
            form.status = to_status
            form.updated_by_id = self.caller.user_id
            if to_status == FormStateMachine.CUSTODIAN_APPROVED:
                form.custodian_approved_by_id = self.caller.user_id
                form.custodian_approved_at = now
            elif to_status == FormStateMachine.ADMIN_APPROVED:
                form.admin_approved_by_id = self.caller.user_id
                form.admin_approved_at = now
            elif to_status == FormStateMachine.REJECTED:
                form.rejection_reason = clean_str(reason)

        logger.info(f"{form_type} {form.id}: {from_status} -> {to_status} by user {self.caller.user_id}")
        return form

    def pending_count(self) -> int:
        """Forms waiting for an approve/reject decision from the caller's role"""
        total = 0
        for form_type, model in FORM_MODELS.items():
            state_machine = STATE_MACHINES[form_type]
            awaiting = {
                from_status
                for (from_status, to_status), roles in state_machine.AUTHORITY.items()
                if to_status == FormStateMachine.REJECTED and self.caller.role in roles
            }
            if not awaiting:
                continue
            query = scope_to_caller(model.query, model, self.caller)
            total += query.filter(model.status.in_(awaiting)).count()
        return total
