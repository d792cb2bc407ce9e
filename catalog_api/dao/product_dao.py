from typing import List
from sqlmodel import select
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from catalog_api.dao.base_dao import BaseDAO
from catalog_api.models.product import Product
import structlog

logger = structlog.get_logger()


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ProductDAO(BaseDAO[Product]):
    def __init__(self):
        super().__init__(Product)

    async def get_all(self, db: AsyncSession) -> List[Product]:
        try:
            result = await db.execute(select(Product).order_by(Product.created_at))
            return result.scalars().all()
        except Exception as e:
            logger.error("Error getting all products", error=str(e))
            raise

    async def search(self, db: AsyncSession, query: str) -> List[Product]:
        """Case-insensitive substring match on name or description."""
        pattern = _like_pattern(query)
        try:
            result = await db.execute(
                select(Product)
                .where(or_(
                    Product.name.ilike(pattern, escape="\\"),
                    Product.description.ilike(pattern, escape="\\"),
                ))
                .order_by(Product.created_at)
            )
            return result.scalars().all()
        except Exception as e:
            logger.error("Error searching products", query=query, error=str(e))
            raise


product_dao = ProductDAO()
