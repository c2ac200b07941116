"""Vacation request lifecycle — the approval state machine.

    DRAFT ──submit──▶ SUBMITTED ──approve──▶ APPROVED
      │                  │  └──────reject───▶ REJECTED
      └──────cancel──────┴─────────────────▶ CANCELLED

APPROVED, REJECTED and CANCELLED are terminal. Business-rule refusals
(validation, wrong state, wrong caller, missing comment) come back as a
``RequestActionResult`` with ``success=False``; only an unknown request id
raises. Each operation only flushes, so the caller's unit of work commits
the status change, the balance recalculation and the absence rows together.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from timeoff.absences.service import AbsenceSynchronizer
from timeoff.calendars.service import DateLike, RequestDayExpander, as_date
from timeoff.common.audit import create_audit_entry
from timeoff.common.constants import AbsenceType, RefusalReason, RequestStatus
from timeoff.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from timeoff.vacations.balance import BalanceService
from timeoff.vacations.models import VacationRequest
from timeoff.vacations.repository import EmployeeRepository, RequestRepository
from timeoff.vacations.schemas import RequestActionResult, VacationRequestOut
from timeoff.vacations.validator import RequestValidator

logger = logging.getLogger(__name__)

SCOPES = ("my", "team", "all")
ABSENCE_TYPES = tuple(t.value for t in AbsenceType)


def _out(request: VacationRequest) -> VacationRequestOut:
    return VacationRequestOut.model_validate(request)


def _invalid_state(request: VacationRequest, action: str) -> RequestActionResult:
    return RequestActionResult.refused(
        RefusalReason.invalid_state,
        f"Cannot {action} a request with status {request.status.value}.",
        request=_out(request),
    )


# ═════════════════════════════════════════════════════════════════════
# RequestLifecycle
# ═════════════════════════════════════════════════════════════════════


class RequestLifecycle:
    """Create, submit, approve, reject, cancel and list vacation requests."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_or_404(db: AsyncSession, request_id: uuid.UUID) -> VacationRequest:
        request = await RequestRepository.get(db, request_id)
        if request is None:
            raise NotFoundException("VacationRequest", str(request_id))
        return request

    @staticmethod
    async def _is_direct_manager(
        db: AsyncSession,
        request: VacationRequest,
        approver_employee_id: uuid.UUID,
    ) -> bool:
        employee = await EmployeeRepository.get(db, request.employee_id)
        return employee is not None and employee.manager_id == approver_employee_id

    @staticmethod
    async def _transition(
        db: AsyncSession,
        request: VacationRequest,
        new_status: RequestStatus,
        *,
        action: str,
        actor_id: uuid.UUID,
        extra: Optional[dict[str, Any]] = None,
    ) -> None:
        """Set the status, flush, re-derive absence rows and audit the change."""
        old_status = request.status
        request.status = new_status
        request.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await AbsenceSynchronizer.sync(db, request.id)

        await create_audit_entry(
            db,
            action=action,
            entity_type="vacation_request",
            entity_id=request.id,
            actor_id=actor_id,
            old_values={"status": old_status.value},
            new_values={"status": new_status.value, **(extra or {})},
        )
        logger.info(
            "Vacation request %s: %s -> %s (by %s)",
            request.id, old_status.value, new_status.value, actor_id,
        )

    # ─────────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create(
        db: AsyncSession,
        employee_id: uuid.UUID,
        start: DateLike,
        end: DateLike,
        type: str = AbsenceType.vacation.value,
        *,
        today: Optional[date] = None,
    ) -> RequestActionResult:
        """Validate the range and persist a DRAFT with its per-day breakdown."""
        if type not in ABSENCE_TYPES:
            return RequestActionResult.refused(
                RefusalReason.validation_failed,
                f"Unknown request type {type!r}; expected one of {', '.join(ABSENCE_TYPES)}.",
            )

        first, last = as_date(start), as_date(end)
        validation = await RequestValidator.validate(
            db, employee_id, first, last, today=today,
        )
        if not validation.is_valid:
            return RequestActionResult.refused(
                RefusalReason.validation_failed,
                "Vacation request is not valid.",
                errors=validation.errors,
                warnings=validation.warnings,
            )

        request = VacationRequest(
            id=uuid.uuid4(),
            employee_id=employee_id,
            start_date=first,
            end_date=last,
            requested_days=validation.working_days,
            type=AbsenceType(type).value,
            status=RequestStatus.draft,
        )
        request.days = await RequestDayExpander.expand(db, request.id, first, last)
        db.add(request)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="vacation_request",
            entity_id=request.id,
            actor_id=employee_id,
            new_values={
                "status": RequestStatus.draft.value,
                "start_date": first.isoformat(),
                "end_date": last.isoformat(),
                "requested_days": str(request.requested_days),
            },
        )
        logger.info(
            "Created vacation request %s for employee %s (%s..%s, %s days)",
            request.id, employee_id, first, last, request.requested_days,
        )
        return RequestActionResult(
            success=True,
            message="Vacation request created.",
            warnings=validation.warnings,
            request=_out(request),
        )

    # ─────────────────────────────────────────────────────────────────
    # Submit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def submit(
        db: AsyncSession,
        request_id: uuid.UUID,
        caller_employee_id: uuid.UUID,
        *,
        today: Optional[date] = None,
    ) -> RequestActionResult:
        request = await RequestLifecycle._get_or_404(db, request_id)

        if request.employee_id != caller_employee_id:
            return RequestActionResult.refused(
                RefusalReason.forbidden,
                "You can only submit your own vacation requests.",
            )
        if request.status != RequestStatus.draft:
            return _invalid_state(request, "submit")

        validation = await RequestValidator.validate(
            db,
            request.employee_id,
            request.start_date,
            request.end_date,
            exclude_request_id=request.id,
            today=today,
        )
        if not validation.is_valid:
            return RequestActionResult.refused(
                RefusalReason.validation_failed,
                "Vacation request is no longer valid.",
                errors=validation.errors,
                warnings=validation.warnings,
                request=_out(request),
            )

        request.submitted_at = datetime.now(timezone.utc)
        await RequestLifecycle._transition(
            db, request, RequestStatus.submitted,
            action="submit", actor_id=caller_employee_id,
        )
        return RequestActionResult(
            success=True,
            message="Vacation request submitted for approval.",
            warnings=validation.warnings,
            request=_out(request),
        )

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def approve(
        db: AsyncSession,
        request_id: uuid.UUID,
        approver_employee_id: uuid.UUID,
        is_manager_only: bool = True,
        comment: Optional[str] = None,
    ) -> RequestActionResult:
        """Approve a SUBMITTED request, then recalculate the balance.

        ``is_manager_only`` restricts approval to the employee's direct
        manager; HR callers pass False. A balance that no longer covers
        the request produces a warning, not a refusal.
        """
        request = await RequestLifecycle._get_or_404(db, request_id)

        if request.status != RequestStatus.submitted:
            return _invalid_state(request, "approve")
        if is_manager_only and not await RequestLifecycle._is_direct_manager(
            db, request, approver_employee_id,
        ):
            return RequestActionResult.refused(
                RefusalReason.forbidden,
                "Only the employee's direct manager can approve this request.",
                request=_out(request),
            )

        warnings: list[str] = []
        year = request.start_date.year
        if not await BalanceService.has_sufficient_balance(
            db, request.employee_id, year, request.requested_days,
        ):
            warnings.append(
                "Approved days exceed the employee's remaining balance for "
                f"{year}."
            )
            logger.warning(
                "Approving request %s beyond the remaining %d balance of employee %s",
                request.id, year, request.employee_id,
            )

        request.approver_employee_id = approver_employee_id
        request.approver_comment = comment
        request.decision_at = datetime.now(timezone.utc)
        await RequestLifecycle._transition(
            db,
            request,
            RequestStatus.approved,
            action="approve",
            actor_id=approver_employee_id,
            extra={"comment": comment},
        )
        await BalanceService.recalculate(db, request.employee_id, year)

        return RequestActionResult(
            success=True,
            message="Vacation request approved.",
            warnings=warnings,
            request=_out(request),
        )

    @staticmethod
    async def reject(
        db: AsyncSession,
        request_id: uuid.UUID,
        approver_employee_id: uuid.UUID,
        is_manager_only: bool = True,
        comment: Optional[str] = None,
    ) -> RequestActionResult:
        """Reject a SUBMITTED request. A non-blank comment is mandatory."""
        request = await RequestLifecycle._get_or_404(db, request_id)

        if request.status != RequestStatus.submitted:
            return _invalid_state(request, "reject")
        if is_manager_only and not await RequestLifecycle._is_direct_manager(
            db, request, approver_employee_id,
        ):
            return RequestActionResult.refused(
                RefusalReason.forbidden,
                "Only the employee's direct manager can reject this request.",
                request=_out(request),
            )
        if comment is None or not comment.strip():
            return RequestActionResult.refused(
                RefusalReason.comment_required,
                "A comment is required to reject a request.",
                request=_out(request),
            )

        request.approver_employee_id = approver_employee_id
        request.approver_comment = comment.strip()
        request.decision_at = datetime.now(timezone.utc)
        await RequestLifecycle._transition(
            db,
            request,
            RequestStatus.rejected,
            action="reject",
            actor_id=approver_employee_id,
            extra={"comment": request.approver_comment},
        )
        return RequestActionResult(
            success=True,
            message="Vacation request rejected.",
            request=_out(request),
        )

    # ─────────────────────────────────────────────────────────────────
    # Cancel
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def cancel(
        db: AsyncSession,
        request_id: uuid.UUID,
        caller_employee_id: uuid.UUID,
    ) -> RequestActionResult:
        """Owner cancels a DRAFT or SUBMITTED request."""
        request = await RequestLifecycle._get_or_404(db, request_id)

        if request.employee_id != caller_employee_id:
            return RequestActionResult.refused(
                RefusalReason.forbidden,
                "You can only cancel your own vacation requests.",
            )
        if request.status not in (RequestStatus.draft, RequestStatus.submitted):
            return _invalid_state(request, "cancel")

        await RequestLifecycle._transition(
            db, request, RequestStatus.cancelled,
            action="cancel", actor_id=caller_employee_id,
        )
        return RequestActionResult(
            success=True,
            message="Vacation request cancelled.",
            request=_out(request),
        )

    # ─────────────────────────────────────────────────────────────────
    # List
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        viewer_id: uuid.UUID,
        *,
        scope: str = "my",
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[RequestStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[VacationRequestOut]:
        """Requests visible to ``viewer_id``, newest first.

        ``my`` — own requests; ``team`` — own plus direct subordinates';
        ``all`` — everyone (HR). ``employee_id`` narrows within the scope.
        """
        if scope not in SCOPES:
            raise ValidationException(
                {"scope": [f"Unknown scope {scope!r}; expected one of {', '.join(SCOPES)}."]}
            )

        employee_ids: Optional[list[uuid.UUID]]
        if scope == "my":
            employee_ids = [viewer_id]
        elif scope == "team":
            team = await EmployeeRepository.subordinates(db, viewer_id, active_only=False)
            employee_ids = [viewer_id] + [emp.id for emp in team]
        else:
            employee_ids = None

        if employee_id is not None:
            if employee_ids is not None and employee_id not in employee_ids:
                raise ForbiddenException(
                    "You can only view requests of yourself or your direct reports."
                )
            employee_ids = [employee_id]

        requests = await RequestRepository.search(
            db,
            employee_ids=employee_ids,
            status=status,
            from_date=from_date,
            to_date=to_date,
        )
        return [_out(r) for r in requests]
