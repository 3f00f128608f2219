# sopopped/repositories/cart_repo.py
from datetime import datetime, timezone

from sqlmodel import Session, select

from sopopped.models.cart import UserCart


class CartRepository:
    """
    Data access layer for user_carts (one JSON snapshot per user).

    NOTE:
      - No commits here; checkout rewrites the cart inside the order
        transaction, so the caller owns session.commit().
    """

    def get(self, session: Session, user_id: int) -> UserCart | None:
        return session.get(UserCart, user_id)

    def get_for_update(self, session: Session, user_id: int) -> UserCart | None:
        stmt = select(UserCart).where(UserCart.user_id == user_id).with_for_update()
        return session.exec(stmt).first()

    def upsert(
        self,
        session: Session,
        user_id: int,
        cart_json: list[dict],
        existing: UserCart | None = None,
    ) -> UserCart:
        """
        Insert the user's snapshot or overwrite it wholesale.

        Every write bumps `version` and stamps `updated_at`.
        """
        row = existing if existing is not None else self.get(session, user_id)
        now = datetime.now(timezone.utc)
        if row is None:
            row = UserCart(user_id=user_id, cart_json=cart_json, version=1, updated_at=now)
        else:
            # assign a new list so the JSON column is flagged dirty
            row.cart_json = list(cart_json)
            row.version += 1
            row.updated_at = now
        session.add(row)
        session.flush()
        return row

    def delete(self, session: Session, row: UserCart) -> None:
        session.delete(row)
        session.flush()
