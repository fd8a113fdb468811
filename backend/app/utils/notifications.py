"""In-app notifications and their email counterparts.

Every helper here runs after the primary transition has been committed. A
failure to persist the notification row or to deliver the email is logged
and swallowed so it can never undo the state change that triggered it.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..core.config import settings
from .email import send_email

logger = logging.getLogger(__name__)


def _absolute_link(action_url: Optional[str]) -> str:
    base = (settings.FRONTEND_URL or "").rstrip("/")
    if not action_url:
        return base
    return f"{base}{action_url}" if action_url.startswith("/") else action_url


def _queue_email(
    background_tasks: Optional[BackgroundTasks],
    recipient: Optional[str],
    subject: str,
    body: str,
) -> None:
    if not recipient:
        return
    if background_tasks is not None:
        background_tasks.add_task(send_email, recipient, subject, body)
    else:
        send_email(recipient, subject, body)


def notify_user(
    db: Session,
    user: Optional[models.User],
    ntype: models.NotificationType,
    title: str,
    message: str,
    action_url: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None,
    background_tasks: Optional[BackgroundTasks] = None,
    email: bool = True,
) -> Optional[models.Notification]:
    """Persist a notification for ``user`` and queue the matching email."""
    if user is None:
        logger.warning("Skipping %s notification: recipient missing", ntype.value)
        return None
    notif = None
    try:
        from ..crud import crud_notification

        notif = crud_notification.create_notification(
            db,
            user_id=user.id,
            type=ntype,
            title=title,
            message=message,
            action_url=action_url,
            data=data,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to store %s notification for user %s: %s", ntype.value, user.id, exc)
    if email:
        body = f"{message}\n\n{_absolute_link(action_url)}"
        _queue_email(background_tasks, user.email, title, body)
    return notif


def _notify_admins(
    db: Session,
    ntype: models.NotificationType,
    title: str,
    message: str,
    action_url: Optional[str],
    data: Optional[Dict[str, Any]],
    background_tasks: Optional[BackgroundTasks],
) -> None:
    from ..crud import crud_user

    admins: Iterable[models.User] = crud_user.user.get_admins(db)
    emailed = set()
    for admin in admins:
        notify_user(db, admin, ntype, title, message, action_url, data, background_tasks)
        emailed.add((admin.email or "").lower())
    extra = (settings.ADMIN_NOTIFICATION_EMAIL or "").strip()
    if extra and extra.lower() not in emailed:
        _queue_email(background_tasks, extra, title, f"{message}\n\n{_absolute_link(action_url)}")


def notify_booking_request(
    db: Session,
    talent: models.User,
    booking: models.Booking,
    booking_talent: models.BookingTalent,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    notify_user(
        db,
        talent,
        models.NotificationType.BOOKING_REQUEST,
        f"New booking request: {booking.title}",
        f"You have been requested for {booking.title} ({booking.code}) starting "
        f"{booking.start_date:%B %d, %Y}. Please accept or decline.",
        action_url="/talent/bookings",
        data={"booking_id": booking.id, "booking_talent_id": booking_talent.id},
        background_tasks=background_tasks,
    )


def notify_request_response(
    db: Session,
    booking_talent: models.BookingTalent,
    booking: models.Booking,
    talent: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    accepted = booking_talent.request_status == models.RequestStatus.ACCEPTED
    verb = "accepted" if accepted else "declined"
    message = f"{talent.full_name} {verb} the request for {booking.title} ({booking.code})."
    if booking_talent.response_message:
        message += f" Message: {booking_talent.response_message}"
    _notify_admins(
        db,
        models.NotificationType.BOOKING_ACCEPTED if accepted else models.NotificationType.BOOKING_DECLINED,
        f"Booking request {verb}",
        message,
        f"/admin/bookings/{booking.id}",
        {"booking_id": booking.id, "booking_talent_id": booking_talent.id},
        background_tasks,
    )


def notify_contract_sent(
    db: Session,
    talent: models.User,
    contract: models.Contract,
    booking: models.Booking,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    due = f" Please sign by {contract.due_date:%B %d, %Y}." if contract.due_date else ""
    notify_user(
        db,
        talent,
        models.NotificationType.CONTRACT_CREATED,
        f"Contract ready to sign: {booking.title}",
        f"Your contract for {booking.title} ({booking.code}) is ready for signature.{due}",
        action_url=f"/contracts/{contract.id}",
        data={"booking_id": booking.id, "contract_id": contract.id},
        background_tasks=background_tasks,
    )


def notify_contract_signed(
    db: Session,
    contract: models.Contract,
    booking: models.Booking,
    signer: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    _notify_admins(
        db,
        models.NotificationType.CONTRACT_SIGNED,
        "Contract signed",
        f"{signer.full_name} signed the contract for {booking.title} ({booking.code}).",
        f"/admin/contracts/{contract.id}",
        {"booking_id": booking.id, "contract_id": contract.id},
        background_tasks,
    )


def notify_task_assigned(
    db: Session,
    task: models.Task,
    assignee: Optional[models.User],
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    due = f" Due {task.due_at:%B %d, %Y}." if task.due_at else ""
    notify_user(
        db,
        assignee,
        models.NotificationType.TASK_ASSIGNED,
        f"New task: {task.title}",
        f"You have been assigned \"{task.title}\" ({task.priority.value} priority).{due}",
        action_url="/tasks",
        data={"task_id": task.id},
        background_tasks=background_tasks,
    )


def notify_talent_approval(
    db: Session,
    talent: models.User,
    approval_status: models.ApprovalStatus,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    if approval_status == models.ApprovalStatus.APPROVED:
        title = "Your talent profile is approved"
        message = f"Welcome to {settings.COMPANY_NAME}! Your profile is now visible in the talent directory."
    else:
        title = "Your talent profile was not approved"
        message = f"Your profile was reviewed by {settings.COMPANY_NAME} and was not approved at this time."
    notify_user(
        db,
        talent,
        models.NotificationType.TALENT_APPROVED,
        title,
        message,
        action_url="/talent/profile",
        data={"approval_status": approval_status.value},
        background_tasks=background_tasks,
    )


def notify_booking_status_update(
    db: Session,
    booking: models.Booking,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    status_label = booking.status.value.replace("_", " ")
    notify_user(
        db,
        booking.client,
        models.NotificationType.BOOKING_STATUS_UPDATED,
        f"Booking {booking.code} is now {status_label}",
        f"The status of {booking.title} ({booking.code}) changed to {status_label}.",
        action_url=f"/bookings/{booking.id}",
        data={"booking_id": booking.id, "status": booking.status.value},
        background_tasks=background_tasks,
    )
