"""
User service: team listings and self-service profile updates.
"""
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from watukobu.core.exceptions import (
    ConflictError, DatabaseError, NotFoundError, PermissionDeniedError, ValidationError,
)
from watukobu.core.logging import get_logger, log_business_event
from watukobu.models.database import Asset, User
from watukobu.models.enums import Role
from watukobu.schemas.user import ProfileUpdate, UserSummary

logger = get_logger(__name__)

DEFAULT_AREA = "Unassigned"


class UserService:
    """Service for user records."""

    def __init__(self, db_session: Session):
        self.db = db_session

    async def list_users(self, role: Optional[Role] = None) -> List[UserSummary]:
        """Active users ordered by name, each with their current case count."""
        counts = dict(
            self.db.query(Asset.collector_id, func.count(Asset.id))
            .filter(Asset.collector_id.isnot(None))
            .group_by(Asset.collector_id)
            .all()
        )
        query = self.db.query(User).filter(User.is_active.is_(True))
        if role:
            query = query.filter(User.role == role.value)

        return [
            UserSummary(
                id=user.id,
                name=user.name,
                email=user.email,
                role=user.role,
                employee_id=user.employee_id,
                area=user.area or DEFAULT_AREA,
                phone=user.phone,
                assigned_count=counts.get(user.id, 0),
            )
            for user in query.order_by(User.name).all()
        ]

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    async def get_profile(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def update_profile(self, user_id: str, viewer: User, data: ProfileUpdate) -> User:
        """
        Update a user's own profile.

        Raises:
            PermissionDeniedError: When the viewer edits someone else's profile
            ValidationError: When the name is blank
            ConflictError: When the email belongs to another user
        """
        if viewer.id != user_id:
            raise PermissionDeniedError("You can only update your own profile", role=viewer.role)
        user = await self.get_profile(user_id)

        name = (data.name or "").strip()
        if not name:
            raise ValidationError("Name is required", field="name")

        if data.email and data.email != user.email:
            taken = (
                self.db.query(User)
                .filter(User.email == data.email, User.id != user.id)
                .first()
            )
            if taken:
                raise ConflictError("Email already in use", email=data.email)
            user.email = data.email

        user.name = name
        changes = data.model_dump(exclude_unset=True, exclude={"name", "email"})
        for key, value in changes.items():
            setattr(user, key, value)

        try:
            self.db.commit()
        except IntegrityError:
            # another request claimed the email after the check above
            self.db.rollback()
            raise ConflictError("Email already in use", email=data.email)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Profile update failed", user_id=user_id, error=str(e))
            raise DatabaseError(str(e), operation="update_profile", user_id=user_id)
        self.db.refresh(user)
        log_business_event("profile_updated", user_id=user.id, fields=sorted(["name", *changes]))
        return user
