import math
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from catalog_api.core.config import settings
from catalog_api.core.exceptions import (
    CatalogError,
    InvalidIdentifierError,
    NotFoundError,
    ValidationError,
)
from catalog_api.dao.product_dao import product_dao
from catalog_api.models.enums import ProductCategory
from catalog_api.models.product import IMAGE_SLOTS, Product
from catalog_api.schemas.product_schemas import (
    ProductEnvelope,
    ProductFields,
    ProductListEnvelope,
    ProductResponse,
)
from catalog_api.services.asset_uploader import AssetUploader, ImagePayload, get_asset_uploader

logger = structlog.get_logger()

REQUIRED_FIELDS = ("name", "description", "category", "price")

# Form field accepted as an alias of the first slot
PRIMARY_IMAGE_FIELD = "image"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ProductService:
    def __init__(
        self,
        uploader: AssetUploader,
        folder: Optional[str] = None,
        require_image: Optional[bool] = None,
    ):
        self.product_dao = product_dao
        self.uploader = uploader
        self.folder = folder if folder is not None else settings.media_folder
        self.require_image = settings.require_product_image if require_image is None else require_image

    @staticmethod
    def parse_product_id(product_id: str) -> UUID:
        try:
            return UUID(str(product_id))
        except (ValueError, TypeError):
            raise InvalidIdentifierError("Invalid product ID format", {"id": product_id})

    @staticmethod
    def validate_category(category: str) -> str:
        if category not in ProductCategory.values():
            raise ValidationError(
                f"Invalid category '{category}'. Must be one of: {', '.join(ProductCategory.values())}",
                {"field": "category", "allowed": ProductCategory.values()},
            )
        return category

    @staticmethod
    def validate_price(price: str) -> float:
        try:
            value = float(price)
        except (TypeError, ValueError):
            raise ValidationError("Price must be a number", {"field": "price", "value": price})
        if math.isnan(value) or math.isinf(value) or value < 0:
            raise ValidationError("Price must be a non-negative number", {"field": "price", "value": price})
        return value

    @staticmethod
    def normalize_image_slots(images: Optional[Dict[str, Optional[ImagePayload]]]) -> Dict[str, ImagePayload]:
        """Map incoming payloads onto image1..image5, dropping empty ones."""
        images = {k: v for k, v in (images or {}).items() if v is not None}

        primary = images.pop(PRIMARY_IMAGE_FIELD, None)
        if primary is not None:
            if "image1" in images:
                raise ValidationError("Send either 'image' or 'image1', not both", {"field": "image"})
            images["image1"] = primary

        unknown = [slot for slot in images if slot not in IMAGE_SLOTS]
        if unknown:
            raise ValidationError(f"Unknown image fields: {', '.join(unknown)}", {"fields": unknown})

        return {slot: images[slot] for slot in IMAGE_SLOTS if slot in images}

    async def _upload_slots(self, payloads: Dict[str, ImagePayload]) -> Dict[str, str]:
        uploaded: Dict[str, str] = {}
        try:
            for slot, payload in payloads.items():
                uploaded[slot] = await self.uploader.upload(payload, self.folder)
        except CatalogError:
            await self._discard_assets(list(uploaded.values()))
            raise
        return uploaded

    async def _discard_assets(self, urls: List[str]) -> None:
        for url in urls:
            await self.uploader.delete_asset(url)

    async def _get_or_404(self, db: AsyncSession, product_id: str) -> Product:
        product_uuid = self.parse_product_id(product_id)
        product = await self.product_dao.get_by_id(db, product_uuid)
        if not product:
            logger.warning("Product not found", product_id=str(product_uuid))
            raise NotFoundError("Product not found", {"id": str(product_uuid)})
        return product

    async def list_products(self, db: AsyncSession) -> ProductListEnvelope:
        try:
            products = await self.product_dao.get_all(db)
        except Exception as e:
            logger.error("Error listing products", error=str(e))
            raise

        if not products:
            raise NotFoundError("No products found")

        logger.info("Retrieved products", count=len(products))
        return ProductListEnvelope(
            count=len(products),
            products=[ProductResponse.from_product(p) for p in products],
        )

    async def get_product(self, db: AsyncSession, product_id: str) -> ProductEnvelope:
        product = await self._get_or_404(db, product_id)
        return ProductEnvelope(product=ProductResponse.from_product(product))

    async def create_product(
        self,
        db: AsyncSession,
        fields: ProductFields,
        images: Optional[Dict[str, Optional[ImagePayload]]] = None,
    ) -> ProductEnvelope:
        values = {name: _clean(getattr(fields, name)) for name in REQUIRED_FIELDS}
        payloads = self.normalize_image_slots(images)

        missing = [name for name in REQUIRED_FIELDS if values[name] is None]
        if self.require_image and not payloads:
            missing.append(PRIMARY_IMAGE_FIELD)
        if missing:
            raise ValidationError.missing_fields(missing)

        product_data = {
            "name": values["name"],
            "description": values["description"],
            "category": self.validate_category(values["category"]),
            "price": self.validate_price(values["price"]),
        }

        uploaded = await self._upload_slots(payloads)
        product_data.update(uploaded)

        try:
            product = await self.product_dao.create(db, obj_in=product_data)
        except Exception as e:
            logger.error("Error creating product", error=str(e), uploaded_assets=len(uploaded))
            await self._discard_assets(list(uploaded.values()))
            raise

        logger.info("Product created successfully", product_id=str(product.id), images=len(uploaded))
        return ProductEnvelope(
            message="Product created successfully",
            product=ProductResponse.from_product(product),
        )

    async def update_product(
        self,
        db: AsyncSession,
        product_id: str,
        fields: ProductFields,
        images: Optional[Dict[str, Optional[ImagePayload]]] = None,
    ) -> ProductEnvelope:
        product = await self._get_or_404(db, product_id)
        payloads = self.normalize_image_slots(images)
        product_key = str(product.id)

        # Omitted fields keep their stored value
        update_data = {}
        for name in ("name", "description"):
            value = _clean(getattr(fields, name))
            if value is not None:
                update_data[name] = value
        category = _clean(fields.category)
        if category is not None:
            update_data["category"] = self.validate_category(category)
        price = _clean(fields.price)
        if price is not None:
            update_data["price"] = self.validate_price(price)

        uploaded = await self._upload_slots(payloads)
        replaced = [getattr(product, slot) for slot in uploaded if getattr(product, slot)]
        update_data.update(uploaded)

        if update_data:
            try:
                product = await self.product_dao.update(db, db_obj=product, obj_in=update_data)
            except Exception as e:
                logger.error("Error updating product", product_id=product_key, error=str(e))
                await self._discard_assets(list(uploaded.values()))
                raise

        # Old assets go only after the record points at the new ones
        await self._discard_assets(replaced)

        logger.info("Product updated successfully",
                    product_id=product_key,
                    fields=sorted(update_data),
                    replaced_images=len(replaced))
        return ProductEnvelope(
            message="Product updated successfully",
            product=ProductResponse.from_product(product),
        )

    async def delete_product(self, db: AsyncSession, product_id: str) -> ProductEnvelope:
        product = await self._get_or_404(db, product_id)
        snapshot = ProductResponse.from_product(product)

        await self._discard_assets(product.image_urls())

        try:
            await self.product_dao.delete(db, id=product.id)
        except Exception as e:
            logger.error("Error deleting product", product_id=snapshot.id, error=str(e))
            raise

        logger.info("Product deleted successfully", product_id=snapshot.id)
        return ProductEnvelope(message="Product deleted successfully", product=snapshot)

    async def search_products(self, db: AsyncSession, query: Optional[str]) -> ProductListEnvelope:
        query = _clean(query)
        if query is None:
            raise ValidationError("Search query is required", {"field": "q"})

        try:
            products = await self.product_dao.search(db, query)
        except Exception as e:
            logger.error("Error searching products", query=query, error=str(e))
            raise

        if not products:
            raise NotFoundError("No products found matching your search", {"query": query})

        logger.info("Searched products", query=query, count=len(products))
        return ProductListEnvelope(
            count=len(products),
            products=[ProductResponse.from_product(p) for p in products],
        )


def get_product_service(uploader: AssetUploader = Depends(get_asset_uploader)) -> ProductService:
    return ProductService(uploader)
