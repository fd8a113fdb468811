from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..utils.auth import get_password_hash, normalize_email
from ..utils.errors import ConflictError


class CRUDUser:
    def get(self, db: Session, user_id: int) -> Optional[models.User]:
        return db.query(models.User).filter(models.User.id == user_id).first()

    def get_by_email(self, db: Session, email: str) -> Optional[models.User]:
        return (
            db.query(models.User)
            .filter(func.lower(models.User.email) == normalize_email(email))
            .first()
        )

    def get_many(self, db: Session, user_ids: Iterable[int]) -> List[models.User]:
        ids = list(user_ids)
        if not ids:
            return []
        return db.query(models.User).filter(models.User.id.in_(ids)).all()

    def get_admins(self, db: Session) -> List[models.User]:
        return (
            db.query(models.User)
            .filter(
                models.User.role == models.UserRole.ADMIN,
                models.User.status != models.UserStatus.SUSPENDED,
            )
            .all()
        )

    def create(self, db: Session, user_in: schemas.UserCreate) -> models.User:
        db_user = models.User(
            email=normalize_email(user_in.email),
            password=get_password_hash(user_in.password),
            first_name=user_in.first_name,
            last_name=user_in.last_name,
            phone=user_in.phone,
            role=user_in.role,
            # Talents wait for profile approval; clients can book right away
            status=models.UserStatus.PENDING if user_in.role == models.UserRole.TALENT else models.UserStatus.ACTIVE,
        )
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        return db_user

    def update_profile(self, db: Session, db_user: models.User, user_in: schemas.UserProfileUpdate) -> models.User:
        data = user_in.model_dump(exclude_unset=True)
        if "email" in data:
            data["email"] = normalize_email(data["email"])
            owner = self.get_by_email(db, data["email"])
            if owner is not None and owner.id != db_user.id:
                raise ConflictError("That email is already in use", {"email": "duplicate"})
        for field, value in data.items():
            setattr(db_user, field, value)
        db.commit()
        db.refresh(db_user)
        return db_user


user = CRUDUser()
