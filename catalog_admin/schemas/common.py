from typing import Annotated, Any, Iterable, List, Literal, Type, TypeVar

from bson import ObjectId
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    WithJsonSchema,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from catalog_admin.config.settings import settings
from catalog_admin.core.exceptions import ValidationError


def _to_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError("Invalid ObjectId")


# 입력: 24자리 hex 문자열 -> ObjectId, JSON 출력 시 문자열
ObjectIdField = Annotated[
    ObjectId,
    BeforeValidator(_to_object_id),
    PlainSerializer(str, return_type=str, when_used="json"),
    WithJsonSchema({"type": "string", "pattern": "^[0-9a-fA-F]{24}$"}),
]

# 응답용: Mongo 문서의 ObjectId 를 문자열로
ObjectIdStr = Annotated[str, BeforeValidator(lambda v: str(v) if isinstance(v, ObjectId) else v)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
    )


class PageQuery(CamelModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default_factory=lambda: settings.DEFAULT_PAGE_SIZE, ge=1)
    sort: str = Field(default="createdAt", pattern=r"^[A-Za-z][A-Za-z0-9_.]*$")
    order: Literal["asc", "desc"] = "asc"

    @field_validator("limit")
    @classmethod
    def limit_within_max(cls, value: int) -> int:
        if value > settings.MAX_PAGE_SIZE:
            raise ValueError(f"limit must be at most {settings.MAX_PAGE_SIZE}")
        return value

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def format_errors(errors: Iterable[dict]) -> List[str]:
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(schema: Type[ModelT], payload: Any) -> ModelT:
    """dict/모델 입력을 스키마로 검증. 실패 시 모든 필드 오류를 담은 ValidationError"""
    if isinstance(payload, schema):
        return payload
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid request payload", errors=format_errors(exc.errors())) from exc


def parse_object_id(value: Any, label: str = "") -> ObjectId:
    try:
        return _to_object_id(value)
    except ValueError:
        raise ValidationError(f"Invalid {label} ID" if label else "Invalid ID") from None


class PageResponse(CamelModel):
    total: int
    current_page: int
    total_pages: int
