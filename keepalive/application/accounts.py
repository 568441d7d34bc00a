"""
Account directory - read side used by the engine.

Accounts are created and edited by the account directory itself; the engine
only needs the ordered list of active accounts and a few counters.
"""
from sqlalchemy.orm import Session

from keepalive.domain.schedule import AccountRef, account_ref_from_db
from keepalive.infrastructure.db.models import AccountModel


class AccountDirectory:
    def __init__(self, db: Session):
        self.db = db

    def list_active(self, user_id: int, group: str | None = None) -> list[AccountRef]:
        """Active accounts in rotation order: (created_at, id)."""
        query = self.db.query(AccountModel).filter(
            AccountModel.user_id == user_id,
            AccountModel.is_active.is_(True),
        )
        if group:
            query = query.filter(AccountModel.group_name == group)
        rows = query.order_by(AccountModel.created_at.asc(), AccountModel.id.asc()).all()
        return [account_ref_from_db(r) for r in rows]

    def count(self, user_id: int) -> dict[str, int]:
        total = self.db.query(AccountModel).filter(AccountModel.user_id == user_id).count()
        active = self.db.query(AccountModel).filter(
            AccountModel.user_id == user_id,
            AccountModel.is_active.is_(True),
        ).count()
        return {"total": total, "active": active}

    def names_by_id(self, user_id: int) -> dict[str, str]:
        rows = self.db.query(AccountModel.id, AccountModel.name).filter(
            AccountModel.user_id == user_id
        ).all()
        return {r.id: r.name for r in rows}
