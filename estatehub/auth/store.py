"""
Credential store over the ``users`` table.

Lookups return the user or ``None``; absence never raises.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import or_, select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from estatehub.models.user import User, utcnow
from estatehub.schemas.user import CurrentUser


class UserStore:
    """Persistence operations the auth core needs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_username_or_email(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Optional[User]:
        """Return the first user whose username or email matches."""
        clauses = []
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email.lower())
        if not clauses:
            return None
        result = await self.db.execute(select(User).where(or_(*clauses)).limit(1))
        return result.scalar_one_or_none()

    async def find_by_login(self, identifier: str) -> Optional[User]:
        """Look up a login identifier against both username and email."""
        return await self.find_by_username_or_email(username=identifier, email=identifier)

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def find_identity(self, user_id: uuid.UUID) -> Optional[CurrentUser]:
        """Load only the non-sensitive columns attached to a request."""
        result = await self.db.execute(
            select(
                User.id,
                User.username,
                User.email,
                User.avatar,
                User.role,
                User.is_active,
                User.created_at,
            ).where(User.id == user_id)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return CurrentUser.model_validate(dict(row._mapping))

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def find_by_reset_token(self, token: str, now: Optional[datetime] = None) -> Optional[User]:
        """Return the user holding ``token`` if the ticket has not expired."""
        now = now or utcnow()
        result = await self.db.execute(
            select(User).where(
                User.reset_password_token == token,
                User.reset_password_expires > now,
            )
        )
        return result.scalar_one_or_none()

    async def create(self, **fields: Any) -> User:
        user = User(**fields)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def update(self, user: User, **fields: Any) -> User:
        for name, value in fields.items():
            setattr(user, name, value)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def delete(self, user_id: uuid.UUID) -> bool:
        result = await self.db.execute(delete(User).where(User.id == user_id))
        await self.db.commit()
        return result.rowcount > 0

    async def consume_reset_token(
        self,
        user_id: uuid.UUID,
        token: str,
        password_hash: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Install a new password hash and clear the reset ticket in one UPDATE.

        The row only matches while the ticket is still stored and unexpired,
        so two racing completions cannot both succeed.
        """
        now = now or utcnow()
        result = await self.db.execute(
            update(User)
            .where(
                User.id == user_id,
                User.reset_password_token == token,
                User.reset_password_expires > now,
            )
            .values(
                password_hash=password_hash,
                reset_password_token=None,
                reset_password_expires=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1
