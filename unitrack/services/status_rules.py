"""
Application status lifecycle.

not_started -> in_progress -> submitted -> under_review -> decided

Status only ever moves forward. The one automatic rule promotes a
not_started application to in_progress as soon as any requirement is
completed; everything past in_progress happens through explicit writes.
"""
import logging
from typing import Iterable, Optional, Union

from unitrack.errors import ConflictError, ValidationError
from unitrack.models import ApplicationStatus, DecisionType, RequirementStatus

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = frozenset({ApplicationStatus.NOT_STARTED, ApplicationStatus.IN_PROGRESS})


def status_after_requirement_change(
    current: ApplicationStatus,
    requirement_statuses: Iterable[Union[RequirementStatus, str]],
) -> ApplicationStatus:
    """Auto-transition evaluated after every requirement mutation (idempotent, one-way)"""
    current = ApplicationStatus(current)
    if current != ApplicationStatus.NOT_STARTED:
        return current
    if any(RequirementStatus(s) == RequirementStatus.COMPLETED for s in requirement_statuses):
        return ApplicationStatus.IN_PROGRESS
    return current


def requirements_editable(status: ApplicationStatus) -> bool:
    return ApplicationStatus(status) in EDITABLE_STATUSES


def can_submit(status: ApplicationStatus) -> bool:
    return not ApplicationStatus(status).is_submitted


def ensure_can_submit(status: ApplicationStatus) -> None:
    if not can_submit(status):
        raise ConflictError(f"Application is already {ApplicationStatus(status).value}")


def transition(current: ApplicationStatus, target: ApplicationStatus) -> ApplicationStatus:
    """Validate an explicit status write; staying put is allowed, moving back is not"""
    current = ApplicationStatus(current)
    target = ApplicationStatus(target)
    if target.rank < current.rank:
        raise ValidationError(f"Cannot move application status from {current.value} back to {target.value}")
    if target != current:
        logger.info(f"Application status {current.value} -> {target.value}")
    return target


def validate_decision(status: ApplicationStatus, decision_type: Optional[Union[DecisionType, str]]) -> None:
    """A decision may only be recorded on a decided application"""
    if decision_type is None:
        return
    if ApplicationStatus(status) != ApplicationStatus.DECIDED:
        raise ValidationError(
            "decision_type can only be set when status is decided",
            details=[{"field": "decision_type", "message": "Status must be decided to record a decision"}],
        )
