from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import models
from ..crud import crud_talent
from ..database import get_db
from ..models import ApprovalStatus
from ..schemas.talent import (
    TalentApprovalUpdate,
    TalentDashboardResponse,
    TalentListResponse,
    TalentProfileCreate,
    TalentProfileResponse,
    TalentProfileUpdate,
)
from ..utils import error_response
from .dependencies import (
    get_current_admin,
    get_current_talent,
    get_current_user,
    get_current_user_optional,
)

router = APIRouter(tags=["talents"], default_response_class=ORJSONResponse)


@router.get("/talents", response_model=TalentListResponse)
def list_talents(
    category: Optional[str] = None,
    location: Optional[str] = None,
    search: Optional[str] = None,
    skills: Optional[List[str]] = Query(default=None),
    approval_status: Optional[ApprovalStatus] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_current_user_optional),
):
    """Public talent directory.

    Anyone sees approved profiles; admins may pass ``approval_status`` to
    review pending or rejected ones.
    """
    is_admin = current_user is not None and current_user.is_admin
    items, total = crud_talent.list_profiles(
        db,
        category=category,
        location=location,
        search=search,
        skills=skills,
        approval_status=approval_status if is_admin and approval_status else ApprovalStatus.APPROVED,
        skip=skip,
        limit=limit,
    )
    return {"items": items, "total": total}


@router.post("/talents", response_model=TalentProfileResponse, status_code=status.HTTP_201_CREATED)
def create_talent_profile(
    profile_in: TalentProfileCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_talent),
):
    return crud_talent.create_profile(db, profile_in, current_user)


@router.get("/talents/dashboard", response_model=TalentDashboardResponse)
def read_talent_dashboard(current_user: models.User = Depends(get_current_talent)):
    """The signed-in talent and their profile, which may not exist yet."""
    return {"user": current_user, "talent_profile": current_user.talent_profile}


@router.get("/talents/{user_id}", response_model=TalentProfileResponse)
def read_talent_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[models.User] = Depends(get_current_user_optional),
):
    profile = crud_talent.get_by_user_id(db, user_id)
    privileged = current_user is not None and (current_user.is_admin or current_user.id == user_id)
    # Unapproved profiles are hidden rather than forbidden
    if profile is None or (profile.approval_status != ApprovalStatus.APPROVED and not privileged):
        raise error_response("Talent profile not found", {"user_id": "not_found"}, status.HTTP_404_NOT_FOUND)
    return profile


@router.patch("/talents/{user_id}", response_model=TalentProfileResponse)
def update_talent_profile(
    user_id: int,
    profile_in: TalentProfileUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return crud_talent.update_profile(db, user_id, profile_in, current_user, background_tasks)


@router.patch("/admin/talents/{user_id}/approve", response_model=TalentProfileResponse)
def approve_talent(
    user_id: int,
    payload: TalentApprovalUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_admin),
):
    if payload.approval_status == ApprovalStatus.PENDING:
        raise error_response(
            "Approval must be approved or rejected",
            {"approval_status": "invalid"},
        )
    return crud_talent.set_approval(db, user_id, payload.approval_status, current_user, background_tasks)
