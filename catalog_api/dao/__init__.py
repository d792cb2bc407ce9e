# Export all DAO classes
from .base_dao import BaseDAO
from .product_dao import product_dao
from .user_dao import user_dao

__all__ = [
    "BaseDAO",
    "product_dao",
    "user_dao",
]
