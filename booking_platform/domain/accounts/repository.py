"""Account repository - Database operations for clients and providers"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ROLE_PROVIDER, Account


class AccountRepository:
    """Repository for account database operations"""

    @staticmethod
    def get_account(db: Session, account_id: int) -> Optional[Account]:
        return db.query(Account).filter(Account.id == account_id).first()

    @staticmethod
    def get_by_external_uid(db: Session, external_uid: str) -> Optional[Account]:
        """The one lookup path from a verified identity to an account"""
        return (
            db.query(Account)
            .filter(Account.external_uid == external_uid, Account.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_provider(db: Session, provider_id: int) -> Optional[Account]:
        return (
            db.query(Account)
            .filter(Account.id == provider_id, Account.role == ROLE_PROVIDER)
            .first()
        )

    @staticmethod
    def lock_provider(db: Session, provider_id: int) -> Optional[Account]:
        """
        Load a provider with a row lock held until the transaction ends.

        Every write that checks the provider's calendar for conflicts takes this
        lock first, so concurrent check-then-insert sequences for the same
        provider run one after another.
        """
        return (
            db.query(Account)
            .filter(Account.id == provider_id, Account.role == ROLE_PROVIDER)
            .with_for_update()
            .first()
        )
