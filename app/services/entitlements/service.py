"""
EntitlementService: ledger of confirmed (user, document) access grants.

grant() is insert-or-ignore on uq_entitlements_user_document, so concurrent
grants for the same pair (free auto-grant racing an approval) end with one row
and no error. It never reads before writing.
"""
import logging

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StorageFailure
from app.models.entitlement import Entitlement
from app.utils.metrics import entitlements_granted_total

logger = logging.getLogger(__name__)

SOURCE_FREE = "free"
SOURCE_APPROVAL = "approval"
SOURCE_ADMIN = "admin"


class EntitlementService:
    def __init__(self, db: Session):
        self.db = db

    def _insert_ignore(self, user_email: str, document_id: str, source: str):
        dialect = self.db.get_bind().dialect.name
        # id / created_at come from the column defaults
        values = {"user_email": user_email, "document_id": document_id, "source": source}
        if dialect == "postgresql":
            stmt = postgresql.insert(Entitlement).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite.insert(Entitlement).values(**values)
        else:
            raise NotImplementedError(f"insert-or-ignore not available for {dialect}")
        return stmt.on_conflict_do_nothing(index_elements=["user_email", "document_id"])

    def grant(
        self,
        user_email: str,
        document_id: str,
        source: str = SOURCE_FREE,
        commit: bool = True,
    ) -> Entitlement:
        """
        Idempotent grant. commit=False leaves the write in the caller's transaction
        (used by reconciliation, which commits the claim status and the grant together).
        """
        try:
            result = self.db.execute(self._insert_ignore(user_email, document_id, source))
            entitlement = self.db.execute(
                select(Entitlement).where(
                    Entitlement.user_email == user_email,
                    Entitlement.document_id == document_id,
                )
            ).scalar_one()
            if commit:
                self.db.commit()
        except SQLAlchemyError as e:
            if commit:
                self.db.rollback()
                logger.exception(
                    "entitlement_grant_failed",
                    extra={"user": user_email, "document_id": document_id},
                )
                raise StorageFailure() from e
            raise

        created = result.rowcount == 1
        entitlements_granted_total.labels(source=source, outcome="created" if created else "existing").inc()
        logger.info(
            "entitlement_granted" if created else "entitlement_already_present",
            extra={"user": user_email, "document_id": document_id, "source": source},
        )
        return entitlement

    def is_entitled(self, user_email: str, document_id: str) -> bool:
        stmt = select(Entitlement.id).where(
            Entitlement.user_email == user_email,
            Entitlement.document_id == document_id,
        )
        return self.db.execute(stmt).first() is not None

    def count(self, user_email: str, document_id: str) -> int:
        return (
            self.db.query(Entitlement)
            .filter(Entitlement.user_email == user_email, Entitlement.document_id == document_id)
            .count()
        )

    def list_for_user(self, user_email: str) -> list[Entitlement]:
        return (
            self.db.query(Entitlement)
            .filter(Entitlement.user_email == user_email)
            .order_by(Entitlement.created_at.desc())
            .all()
        )
