from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, Field

from catalog_admin.schemas.common import CamelModel, ObjectIdField, ObjectIdStr

MAX_CATEGORY_LEVEL = 3


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    level: int = Field(ge=1, le=MAX_CATEGORY_LEVEL)
    parent_id: Optional[ObjectIdField] = None


class CategoryUpdate(CamelModel):
    """PATCH 입력. 명시적으로 보낸 필드만 model_fields_set 에 포함됨"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    level: Optional[int] = Field(default=None, ge=1, le=MAX_CATEGORY_LEVEL)
    parent_id: Optional[ObjectIdField] = None


class CategoryListQuery(CamelModel):
    sort: str = Field(default="level", pattern=r"^[A-Za-z][A-Za-z0-9_.]*$")
    order: Literal["asc", "desc"] = "asc"
    level: Optional[int] = Field(default=None, ge=1, le=MAX_CATEGORY_LEVEL)
    parent_id: Optional[ObjectIdField] = None
    name: Optional[str] = None


class CategoryResponse(CamelModel):
    id: ObjectIdStr = Field(validation_alias=AliasChoices("_id", "id"))
    name: str
    level: int
    parent_id: Optional[ObjectIdStr] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryListResponse(CamelModel):
    data: List[CategoryResponse]
    total: int


class CategoryMutationResponse(CamelModel):
    message: str
    data: CategoryResponse


class CategoryParentsResponse(CamelModel):
    data: List[CategoryResponse]
