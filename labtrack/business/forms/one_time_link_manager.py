"""
One-time form links

A custodian generates a token for their lab; whoever holds it may submit exactly
one form for that lab before it expires.
"""

import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from labtrack import db
from labtrack.data.core.laboratory import Laboratory
from labtrack.data.forms.one_time_link import OneTimeLink
from labtrack.business.core.access_scope import CallerScope, ensure_lab_access
from labtrack.business.core.errors import LabValidationError, LabNotFoundError
from labtrack.business.core.transaction import atomic
from labtrack.business.core.validation import as_int, get_or_raise
from labtrack.business.forms.form_manager import FormManager
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.forms.one_time_links")

MAX_LINK_HOURS = 24 * 7


class OneTimeLinkManager:

    def __init__(self, caller: Optional[CallerScope] = None):
        self.caller = caller

    def generate(self, now: datetime, lab_id=None, expires_in_hours=24) -> OneTimeLink:
        lab_id = as_int(lab_id, 'lab_id', required=False)
        if lab_id is None:
            lab_id = self.caller.lab_id
        if lab_id is None:
            raise LabValidationError("lab_id is required", details=[{'field': 'lab_id'}])
        get_or_raise(Laboratory, lab_id, 'Laboratory', error=LabValidationError)
        ensure_lab_access(self.caller, lab_id, action='generate form links for')

        hours = as_int(expires_in_hours, 'expires_in_hours')
        if not 1 <= hours <= MAX_LINK_HOURS:
            raise LabValidationError(f"expires_in_hours must be between 1 and {MAX_LINK_HOURS}",
                                     details=[{'field': 'expires_in_hours'}])

        with atomic('one-time link generation'):
            link = OneTimeLink(
                token=secrets.token_urlsafe(32),
                lab_id=lab_id,
                generated_by_id=self.caller.user_id,
                expires_at=now + timedelta(hours=hours),
                created_by_id=self.caller.user_id,
            )
            db.session.add(link)
        logger.info(f"One-time link {link.id} generated for lab {lab_id}, expires {link.expires_at.isoformat()}")
        return link

    @staticmethod
    def validate(token: str, now: datetime) -> OneTimeLink:
        link = OneTimeLink.query.filter_by(token=token).first() if token else None
        if link is None or not link.is_usable(now):
            raise LabNotFoundError("Invalid or expired token")
        return link

    def submit(self, token: str, form_type: str, payload: Dict[str, Any], now: datetime):
        """
        Submit one form through the link and consume it in the same transaction.

        The claim is a conditional update, so two concurrent submissions with the
        same token cannot both succeed.
        """
        link = self.validate(token, now)
        with atomic('one-time link submission'):
            claimed = (OneTimeLink.query
                       .filter(OneTimeLink.id == link.id, OneTimeLink.used_at.is_(None))
                       .update({'used_at': now}, synchronize_session=False))
            if not claimed:
                raise LabNotFoundError("Invalid or expired token")
            form = FormManager().prepare(form_type, payload, lab_ref=link.lab_id, submitted_via='one-time-link')
            db.session.flush()
            (OneTimeLink.query
             .filter(OneTimeLink.id == link.id)
             .update({'form_type': form_type, 'form_id': form.id}, synchronize_session=False))
        db.session.expire(link)
        logger.info(f"One-time link {link.id} consumed by {form_type} {form.id}")
        return form
