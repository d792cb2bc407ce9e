# Import all models for easy access
from .user import User, UserRead
from .product import Product, IMAGE_SLOTS
from .enums import ProductCategory

# Export all models
__all__ = [
    "User", "UserRead",
    "Product", "IMAGE_SLOTS",
    "ProductCategory",
]
