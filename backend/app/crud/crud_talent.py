import logging
from typing import List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy import String, cast, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from ..utils.errors import ConflictError, ForbiddenError, NotFoundError
from ..utils import notifications

logger = logging.getLogger(__name__)


def get_by_user_id(db: Session, user_id: int) -> Optional[models.TalentProfile]:
    return (
        db.query(models.TalentProfile)
        .options(joinedload(models.TalentProfile.user))
        .filter(models.TalentProfile.user_id == user_id)
        .first()
    )


def list_profiles(
    db: Session,
    category: Optional[str] = None,
    location: Optional[str] = None,
    search: Optional[str] = None,
    skills: Optional[List[str]] = None,
    approval_status: Optional[models.ApprovalStatus] = models.ApprovalStatus.APPROVED,
    skip: int = 0,
    limit: int = 20,
) -> Tuple[List[models.TalentProfile], int]:
    """Directory listing; defaults to approved profiles only.

    ``skills`` matches profiles that list any one of the given skills.
    """
    query = db.query(models.TalentProfile).join(models.User, models.User.id == models.TalentProfile.user_id)
    if approval_status is not None:
        query = query.filter(models.TalentProfile.approval_status == approval_status)
    if category:
        # JSON list stored as text; match the quoted tag to avoid substring hits
        needle = f'%"{category.strip().lower()}"%'
        query = query.filter(cast(models.TalentProfile.categories, String).like(needle))
    wanted = [s.strip().lower() for s in skills or [] if s.strip()]
    if wanted:
        skills_text = cast(models.TalentProfile.skills, String)
        query = query.filter(or_(*(skills_text.like(f'%"{skill}"%') for skill in wanted)))
    if location:
        query = query.filter(func.lower(models.TalentProfile.location).contains(location.strip().lower()))
    if search:
        term = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(models.User.first_name).like(term),
                func.lower(models.User.last_name).like(term),
                func.lower(models.TalentProfile.stage_name).like(term),
            )
        )
    total = query.count()
    items = (
        query.options(joinedload(models.TalentProfile.user))
        .order_by(models.TalentProfile.created_at.desc(), models.TalentProfile.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return items, total


def create_profile(
    db: Session,
    profile_in: schemas.TalentProfileCreate,
    actor: models.User,
) -> models.TalentProfile:
    if actor.role != models.UserRole.TALENT:
        raise ForbiddenError("Only talent accounts can create a talent profile", {"role": "forbidden"})
    if get_by_user_id(db, actor.id) is not None:
        raise ConflictError("Talent profile already exists", {"user_id": "duplicate"})
    data = profile_in.model_dump(mode="json")
    profile = models.TalentProfile(
        **data,
        user_id=actor.id,
        approval_status=models.ApprovalStatus.PENDING,
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Talent profile already exists", {"user_id": "duplicate"})
    db.refresh(profile)
    logger.info("Talent profile %s created for user %s", profile.id, actor.id)
    return profile


def update_profile(
    db: Session,
    user_id: int,
    profile_in: schemas.TalentProfileUpdate,
    actor: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> models.TalentProfile:
    profile = get_by_user_id(db, user_id)
    if profile is None:
        raise NotFoundError("Talent profile not found", {"user_id": "not_found"})
    if not (actor.is_admin or actor.id == user_id):
        raise ForbiddenError("You can only edit your own profile", {"user_id": "forbidden"})
    data = profile_in.model_dump(exclude_unset=True, mode="json")
    approval = data.pop("approval_status", None)
    if approval is not None and not actor.is_admin:
        raise ForbiddenError("Only admins can change approval status", {"approval_status": "forbidden"})
    for field, value in data.items():
        setattr(profile, field, value)
    db.commit()
    db.refresh(profile)
    if approval is not None:
        profile = set_approval(db, user_id, models.ApprovalStatus(approval), actor, background_tasks)
    return profile


def set_approval(
    db: Session,
    user_id: int,
    approval_status: models.ApprovalStatus,
    actor: models.User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> models.TalentProfile:
    if not actor.is_admin:
        raise ForbiddenError("Only admins can change approval status", {"approval_status": "forbidden"})
    profile = get_by_user_id(db, user_id)
    if profile is None:
        raise NotFoundError("Talent profile not found", {"user_id": "not_found"})
    if profile.approval_status == approval_status:
        return profile
    profile.approval_status = approval_status
    if approval_status == models.ApprovalStatus.APPROVED and profile.user.status == models.UserStatus.PENDING:
        profile.user.status = models.UserStatus.ACTIVE
    db.commit()
    db.refresh(profile)
    logger.info("Talent %s approval set to %s by %s", user_id, approval_status.value, actor.id)
    if approval_status != models.ApprovalStatus.PENDING:
        notifications.notify_talent_approval(db, profile.user, approval_status, background_tasks)
    return profile
