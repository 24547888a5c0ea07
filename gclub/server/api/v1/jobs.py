"""
Maintenance Job Endpoints.

Triggers for an external cron. Every call must carry
``Authorization: Bearer <CRON_SECRET>``; when no secret is configured the
endpoints are disabled (503).
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Query

from gclub.core.errors import ServiceUnavailableError, UnauthorizedError
from gclub.core.models.io.jobs import (
    CleanupResult,
    JobRunResult,
    ReminderResult,
    ScheduledDeliveryResult,
    StatusUpdateResult,
    TimeWaitingResult,
)
from gclub.server.core.config import settings
from gclub.server.services.auth import UNAUTHORIZED_HEADERS
from gclub.server.services.deps import BearerDep, MaintenanceServiceDep


async def verify_cron_secret(credentials: BearerDep) -> None:
    secret = settings.jobs.cron_secret
    if not secret:
        raise ServiceUnavailableError("CRON_SECRET is not configured")
    token = credentials.credentials if credentials else ""
    if not hmac.compare_digest(token.encode(), secret.encode()):
        raise UnauthorizedError("Invalid cron secret", headers=UNAUTHORIZED_HEADERS)


router = APIRouter(
    dependencies=[Depends(verify_cron_secret)],
    responses={
        401: {"description": "Missing or wrong cron secret"},
        503: {"description": "CRON_SECRET is not configured"},
    },
)


@router.post(
    "/time-waiting",
    response_model=TimeWaitingResult,
    summary="Release Time-waiting Entries",
    description="Move due TIME_WAITING entries to the queue and promote them where slots are free.",
)
async def promote_time_waiting(service: MaintenanceServiceDep) -> TimeWaitingResult:
    return await service.promote_time_waiting()


@router.post(
    "/post-status",
    response_model=StatusUpdateResult,
    summary="Update Game Post Statuses",
    description="Start FULL posts whose time came, complete stale running posts and expire stale open posts.",
)
async def update_post_statuses(service: MaintenanceServiceDep) -> StatusUpdateResult:
    return await service.update_post_statuses()


@router.post(
    "/meeting-reminders",
    response_model=ReminderResult,
    summary="Send Meeting Reminders",
    description="BEFORE_MEETING reminders by each user's lead time and one MEETING_START per started post.",
)
async def send_meeting_reminders(service: MaintenanceServiceDep) -> ReminderResult:
    return await service.send_meeting_reminders()


@router.post(
    "/scheduled-notifications",
    response_model=ScheduledDeliveryResult,
    summary="Deliver Scheduled Notifications",
)
async def deliver_scheduled_notifications(service: MaintenanceServiceDep) -> ScheduledDeliveryResult:
    return await service.deliver_scheduled_notifications()


@router.post(
    "/cleanup-notifications",
    response_model=CleanupResult,
    summary="Clean Up Notifications",
    description="Delete notifications older than the retention window.",
)
async def cleanup_notifications(
    service: MaintenanceServiceDep,
    retention_days: Optional[int] = Query(None, ge=1, description="Defaults to NOTIFICATION_RETENTION_DAYS"),
) -> CleanupResult:
    return await service.cleanup_notifications(retention_days=retention_days)


@router.post(
    "/run-all",
    response_model=JobRunResult,
    summary="Run All Jobs",
    description="Run every maintenance job once, in order.",
)
async def run_all(service: MaintenanceServiceDep) -> JobRunResult:
    return await service.run_all()
