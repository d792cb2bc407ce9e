from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from typing import Optional, List
from datetime import datetime, timezone
import uuid


IMAGE_SLOTS = ("image1", "image2", "image3", "image4", "image5")


class ProductBase(SQLModel):
    name: str = Field(index=True)
    description: str
    category: str = Field(index=True)
    price: float
    image1: Optional[str] = None
    image2: Optional[str] = None
    image3: Optional[str] = None
    image4: Optional[str] = None
    image5: Optional[str] = None


class Product(ProductBase, table=True):
    __tablename__ = "products"

    id: Optional[uuid.UUID] = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
        nullable=False
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        nullable=False
    )
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    def image_urls(self) -> List[str]:
        """Non-empty image slot values, in slot order."""
        return [url for url in (getattr(self, slot) for slot in IMAGE_SLOTS) if url]

