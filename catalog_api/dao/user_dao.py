from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from catalog_api.dao.base_dao import BaseDAO
from catalog_api.models.user import User


class UserDAO(BaseDAO[User]):
    def __init__(self):
        super().__init__(User)

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        # Emails are stored lower-cased at signup
        return await self.find_one(db, email=email.lower())


user_dao = UserDAO()
