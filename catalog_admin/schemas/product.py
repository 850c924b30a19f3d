from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, Field

from catalog_admin.schemas.category import CategoryResponse
from catalog_admin.schemas.common import CamelModel, ObjectIdField, ObjectIdStr, PageQuery, PageResponse
from catalog_admin.schemas.variant import VariantResponse


class ProductCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    sku: str = Field(min_length=1, max_length=100)
    category_id: ObjectIdField
    description: Optional[str] = None
    status: bool = True


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sku: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category_id: Optional[ObjectIdField] = None
    description: Optional[str] = None
    status: Optional[bool] = None
    # null 을 보내면 대표 variant 해제
    representative_variant_id: Optional[ObjectIdField] = None


class ProductListQuery(PageQuery):
    category_id: Optional[ObjectIdField] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    status: Optional[bool] = None


class BulkDeleteRequest(CamelModel):
    ids: List[ObjectIdField] = Field(min_length=1)


class ProductResponse(CamelModel):
    id: ObjectIdStr = Field(validation_alias=AliasChoices("_id", "id"))
    name: str
    sku: str
    category_id: Optional[ObjectIdStr] = None
    category: Optional[CategoryResponse] = None
    representative_variant_id: Optional[ObjectIdStr] = None
    description: Optional[str] = None
    status: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AvailableColor(CamelModel):
    variant_id: ObjectIdStr
    actual_color: str


class ProductListItem(ProductResponse):
    representative_variant: Optional[VariantResponse] = None
    variant_count: int = 0
    available_colors: List[AvailableColor] = []


class ProductListResponse(PageResponse):
    data: List[ProductListItem]


class ProductMutationResponse(CamelModel):
    message: str
    data: ProductResponse


class BulkDeleteResponse(CamelModel):
    message: str
    deleted_count: int
    deleted_variant_count: int
