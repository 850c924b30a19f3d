import math
import re
from typing import Any, Dict, List, Tuple

from pymongo import ASCENDING, DESCENDING

# 생성 순서 = (createdAt, _id) 오름차순
CREATION_ORDER: List[Tuple[str, int]] = [("createdAt", ASCENDING), ("_id", ASCENDING)]


def contains(text: str) -> Dict[str, Any]:
    """대소문자 무시 부분 문자열 매칭"""
    return {"$regex": re.escape(text), "$options": "i"}


def sort_spec(field: str, order: str) -> List[Tuple[str, int]]:
    direction = DESCENDING if order == "desc" else ASCENDING
    if field == "_id":
        return [("_id", direction)]
    # 동일 값 사이의 순서를 고정
    return [(field, direction), ("_id", direction)]


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def page_envelope(data: List[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        "data": data,
        "total": total,
        "currentPage": page,
        "totalPages": total_pages(total, limit),
    }
