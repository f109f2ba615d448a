import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.admin_user import AdminUser


class AdminUserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active(self, admin_id: uuid.UUID) -> AdminUser | None:
        result = await self.session.execute(
            select(AdminUser).where(
                AdminUser.id == admin_id,
                AdminUser.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()
