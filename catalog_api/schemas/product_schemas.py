from pydantic import BaseModel
from typing import Optional, List

from catalog_api.models.product import Product


class ProductResponse(BaseModel):
    """Public projection of a product record."""

    id: str
    name: str
    description: str
    category: str
    price: float
    # First non-empty slot, for single-image clients
    image: Optional[str] = None
    image1: Optional[str] = None
    image2: Optional[str] = None
    image3: Optional[str] = None
    image4: Optional[str] = None
    image5: Optional[str] = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        urls = product.image_urls()
        return cls(
            id=str(product.id),
            name=product.name,
            description=product.description,
            category=product.category,
            price=product.price,
            image=urls[0] if urls else None,
            image1=product.image1,
            image2=product.image2,
            image3=product.image3,
            image4=product.image4,
            image5=product.image5,
        )


class ProductEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    product: ProductResponse


class ProductListEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    count: int
    products: List[ProductResponse]


class ProductFields(BaseModel):
    """Raw text fields of a create/update request, before validation."""

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[str] = None
