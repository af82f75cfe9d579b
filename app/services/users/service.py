import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFound, ValidationError
from app.models.user import ROLE_ADMIN, ROLE_USER, ROLES, User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.strip().lower()).one_or_none()

    def get_or_create_user(self, email: str, display_name: str | None = None) -> User:
        """
        Upsert on sign-in. The role is only seeded on creation (bootstrap admins);
        later changes go through set_role.
        """
        email = email.strip().lower()
        now = datetime.now(timezone.utc)
        user = self.get(email)
        if user:
            if display_name is not None:
                user.display_name = display_name
            user.last_login_at = now
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            return user
        role = ROLE_ADMIN if email in settings.bootstrap_admin_emails_set else ROLE_USER
        user = User(email=email, display_name=display_name, role=role, last_login_at=now)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # concurrent first sign-in of the same email
            self.db.rollback()
            return self.get_or_create_user(email, display_name)
        self.db.refresh(user)
        logger.info("user_created", extra={"user": email, "status": role})
        return user

    def set_role(self, email: str, role: str) -> User:
        if role not in ROLES:
            raise ValidationError(f"Unknown role: {role}")
        user = self.get(email)
        if not user:
            raise NotFound("User not found")
        user.role = role
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
