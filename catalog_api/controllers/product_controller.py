from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.core.database import get_async_session
from catalog_api.schemas.envelopes import ErrorEnvelope
from catalog_api.schemas.product_schemas import ProductEnvelope, ProductFields, ProductListEnvelope
from catalog_api.services.asset_uploader import ImagePayload
from catalog_api.services.product_service import ProductService, get_product_service

router = APIRouter(prefix="/products", tags=["Products"])

ERROR_RESPONSES = {
    400: {"model": ErrorEnvelope},
    404: {"model": ErrorEnvelope},
    500: {"model": ErrorEnvelope},
}


async def _read_images(**uploads: Optional[UploadFile]) -> Dict[str, Optional[ImagePayload]]:
    return {field: await ImagePayload.from_upload_file(upload) for field, upload in uploads.items()}


@router.get("", response_model=ProductListEnvelope, response_model_exclude_none=True, responses=ERROR_RESPONSES)
async def list_products(
    db: AsyncSession = Depends(get_async_session),
    service: ProductService = Depends(get_product_service),
):
    """List every product"""
    return await service.list_products(db)


@router.get("/search", response_model=ProductListEnvelope, response_model_exclude_none=True, responses=ERROR_RESPONSES)
async def search_products(
    q: Optional[str] = Query(None, description="Text matched against name and description"),
    db: AsyncSession = Depends(get_async_session),
    service: ProductService = Depends(get_product_service),
):
    """Case-insensitive search over product name and description"""
    return await service.search_products(db, q)


@router.get("/{product_id}", response_model=ProductEnvelope, response_model_exclude_none=True, responses=ERROR_RESPONSES)
async def get_product(
    product_id: str,
    db: AsyncSession = Depends(get_async_session),
    service: ProductService = Depends(get_product_service),
):
    return await service.get_product(db, product_id)


@router.post(
    "",
    response_model=ProductEnvelope,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_product(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    image1: Optional[UploadFile] = File(None),
    image2: Optional[UploadFile] = File(None),
    image3: Optional[UploadFile] = File(None),
    image4: Optional[UploadFile] = File(None),
    image5: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_async_session),
    service: ProductService = Depends(get_product_service),
):
    """Create a product, uploading any supplied images first"""
    fields = ProductFields(name=name, description=description, category=category, price=price)
    images = await _read_images(
        image=image, image1=image1, image2=image2, image3=image3, image4=image4, image5=image5
    )
    return await service.create_product(db, fields, images)


@router.put("/{product_id}", response_model=ProductEnvelope, response_model_exclude_none=True, responses=ERROR_RESPONSES)
async def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    image1: Optional[UploadFile] = File(None),
    image2: Optional[UploadFile] = File(None),
    image3: Optional[UploadFile] = File(None),
    image4: Optional[UploadFile] = File(None),
    image5: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_async_session),
    service: ProductService = Depends(get_product_service),
):
    """Update the supplied fields; new images replace the matching slots"""
    fields = ProductFields(name=name, description=description, category=category, price=price)
    images = await _read_images(
        image=image, image1=image1, image2=image2, image3=image3, image4=image4, image5=image5
    )
    return await service.update_product(db, product_id, fields, images)


@router.delete("/{product_id}", response_model=ProductEnvelope, response_model_exclude_none=True, responses=ERROR_RESPONSES)
async def delete_product(
    product_id: str,
    db: AsyncSession = Depends(get_async_session),
    service: ProductService = Depends(get_product_service),
):
    """Delete a product and, best-effort, its images"""
    return await service.delete_product(db, product_id)
