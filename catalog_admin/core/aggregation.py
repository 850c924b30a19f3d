"""In-memory grouping used to denormalize variants onto their products.

Variants are expected in creation order; "first" and "oldest" below both
rely on it.
"""

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId


def group_by_product(variants: Iterable[Dict[str, Any]]) -> Dict[ObjectId, List[Dict[str, Any]]]:
    groups: Dict[ObjectId, List[Dict[str, Any]]] = {}
    for variant in variants:
        groups.setdefault(variant["productId"], []).append(variant)
    return groups


def available_colors(variants: Iterable[Dict[str, Any]], detailed: bool = False) -> List[Dict[str, Any]]:
    """First-seen variant per distinct actualColor, in order of first appearance."""
    colors: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    for variant in variants:
        color = variant.get("color") or {}
        actual_color = color.get("actualColor")
        if not actual_color or actual_color in colors:
            continue
        entry = {"variantId": variant["_id"], "actualColor": actual_color}
        if detailed:
            entry["baseColor"] = color.get("baseColor")
            entry["colorName"] = color.get("colorName")
        colors[actual_color] = entry
    return list(colors.values())


def select_representative(
    product: Dict[str, Any],
    variants: List[Dict[str, Any]],
    referenced: Optional[Dict[ObjectId, Dict[str, Any]]] = None,
) -> Optional[Dict[str, Any]]:
    """Stored representativeVariantId when it resolves, else the oldest variant."""
    representative_id = product.get("representativeVariantId")
    if representative_id is not None:
        for variant in variants:
            if variant["_id"] == representative_id:
                return variant
        if referenced and representative_id in referenced:
            return referenced[representative_id]
    return variants[0] if variants else None
