from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from catalog_admin.schemas.common import CamelModel, ObjectIdField, ObjectIdStr, PageQuery, PageResponse


Size = Literal["S", "M", "L", "XL", "XXL"]


class VariantColor(CamelModel):
    base_color: str = Field(min_length=1)
    actual_color: str = Field(min_length=1)
    color_name: str = Field(min_length=1)


class ImageAsset(BaseModel):
    url: str = Field(min_length=1)
    public_id: str = Field(min_length=1)


class VariantImages(CamelModel):
    main: ImageAsset
    hover: ImageAsset
    product: List[ImageAsset] = []


class VariantAttribute(CamelModel):
    attribute: str = Field(min_length=1)
    value: str = Field(min_length=1)


class SizeStock(CamelModel):
    size: Size
    stock: int = Field(ge=0)


def _unique_sizes(sizes: Optional[List[SizeStock]]) -> Optional[List[SizeStock]]:
    if sizes is None:
        return sizes
    seen = set()
    for entry in sizes:
        if entry.size in seen:
            raise ValueError(f"duplicate size {entry.size}")
        seen.add(entry.size)
    return sizes


class VariantCreate(CamelModel):
    product_id: ObjectIdField
    sku: str = Field(min_length=1, max_length=100)
    price: float = Field(ge=0)
    color: VariantColor
    images: VariantImages
    attributes: List[VariantAttribute] = []
    sizes: List[SizeStock] = []
    status: bool = True

    check_sizes = field_validator("sizes")(_unique_sizes)


class VariantUpdate(CamelModel):
    product_id: Optional[ObjectIdField] = None
    sku: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[float] = Field(default=None, ge=0)
    color: Optional[VariantColor] = None
    images: Optional[VariantImages] = None
    attributes: Optional[List[VariantAttribute]] = None
    sizes: Optional[List[SizeStock]] = None
    status: Optional[bool] = None

    check_sizes = field_validator("sizes")(_unique_sizes)


class ProductContext(CamelModel):
    id: ObjectIdStr = Field(validation_alias=AliasChoices("_id", "id"))
    name: str
    sku: str
    category_id: Optional[ObjectIdStr] = None


class VariantResponse(CamelModel):
    id: ObjectIdStr = Field(validation_alias=AliasChoices("_id", "id"))
    product_id: ObjectIdStr
    sku: str
    price: float
    color: VariantColor
    images: VariantImages
    attributes: List[VariantAttribute] = []
    sizes: List[SizeStock] = []
    status: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    product: Optional[ProductContext] = None


class VariantPageResponse(PageResponse):
    data: List[VariantResponse]


class VariantListResponse(CamelModel):
    data: List[VariantResponse]


class VariantMutationResponse(CamelModel):
    message: str
    data: VariantResponse


class VariantColorEntry(CamelModel):
    variant_id: ObjectIdStr
    actual_color: str
    base_color: Optional[str] = None
    color_name: Optional[str] = None


class VariantColorsResponse(CamelModel):
    product_id: ObjectIdStr
    data: List[VariantColorEntry]


class VariantListQuery(PageQuery):
    product_id: Optional[ObjectIdField] = None
    sku: Optional[str] = None
    status: Optional[bool] = None


class VariantColorQuery(PageQuery):
    base_color: Optional[str] = None
    actual_color: Optional[str] = None
    color_name: Optional[str] = None
    status: Optional[bool] = None

    @model_validator(mode="after")
    def require_color(self):
        if not (self.base_color or self.actual_color or self.color_name):
            raise ValueError("one of baseColor, actualColor or colorName is required")
        return self


class VariantCategoryQuery(PageQuery):
    category_id: ObjectIdField
    include_descendants: bool = True


class VariantSearchQuery(PageQuery):
    q: Optional[str] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    category_id: Optional[ObjectIdField] = None

    @model_validator(mode="after")
    def check_price_range(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("minPrice must not exceed maxPrice")
        return self
