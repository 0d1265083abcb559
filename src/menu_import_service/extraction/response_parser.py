"""Parsing and normalization of AI extraction output.

Models without constrained output return free text that may be wrapped in
markdown fences, embedded in prose, or shaped differently from the canonical
``{categories, optionGroups, confidence}`` object. ``normalize`` is the single
place where that ambiguity is resolved.
"""

import json
import logging
import re
from typing import Any

from menu_import_service.errors import AIResponseParseError
from menu_import_service.models.extraction_models import (
    ExtractedCategory,
    ExtractedItem,
    ExtractedMenuData,
    ExtractedOptionChoice,
    ExtractedOptionGroup,
    OptionGroupType,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.7
UNKNOWN_CATEGORY = "Unknown Category"
UNKNOWN_ITEM = "Unknown Item"
OPTION_GROUP_KEYS = ("optionGroups", "option_groups", "options")
RESERVED_KEYS = frozenset(("confidence", *OPTION_GROUP_KEYS))
RAW_PREVIEW_LENGTH = 200

# first letter at the start of the string or after whitespace
_WORD_START = re.compile(r"(^|\s)([^\W\d_])")


def normalize_text_case(text: str) -> str:
    """Trim, lowercase, then capitalize the first letter of every word."""
    trimmed = text.strip()
    if not trimmed:
        return trimmed
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), trimmed.lower())


def format_category_name(key: str) -> str:
    """Turn a snake_case key such as ``hot_drinks`` into ``Hot Drinks``."""
    return normalize_text_case(key.replace("_", " "))


def strip_code_fences(content: str) -> str:
    cleaned = content.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_response_text(content: str) -> Any:
    """Parse raw model text into generic JSON data.

    Strategy:
    1. Strip markdown code fences and parse the remainder.
    2. Slide through the text and parse the first brace-balanced object.

    Raises:
        AIResponseParseError: If no JSON value can be recovered
    """
    cleaned = strip_code_fences(content)

    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, ValueError):
        pass

    for index, char in enumerate(cleaned):
        if char == "{":
            recovered = _extract_balanced(cleaned, index)
            if recovered is not None:
                return recovered

    logger.debug("Unparseable AI response", extra={"raw_content": content})
    raise AIResponseParseError(
        "AI response could not be parsed as JSON",
        raw_preview=cleaned[:RAW_PREVIEW_LENGTH],
    )


def _extract_balanced(text: str, start: int) -> Any:
    """Parse the brace-balanced object starting at *start*, or return None."""
    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(text)):
        char = text[i]

        if escape:
            escape = False
            continue

        if char == "\\":
            if in_string:
                escape = True
            continue

        if char == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                try:
                    return json.loads(text[start : i + 1])
                except (json.JSONDecodeError, ValueError):
                    return None

    return None


def normalize(raw: Any) -> ExtractedMenuData:
    """Normalize parsed AI output into ``ExtractedMenuData``.

    If *raw* already has the canonical shape (a ``categories`` list), field
    types and name casing are normalized. Otherwise every top-level key that
    holds a list (reserved keys excepted) is read as an implicit category
    whose value is its item list. Item names on that recovery path keep the
    model's casing.

    Raises:
        AIResponseParseError: If *raw* is not a JSON object
    """
    if not isinstance(raw, dict):
        raise AIResponseParseError(
            f"Unexpected AI response shape: {type(raw).__name__}",
            raw_preview=str(raw)[:RAW_PREVIEW_LENGTH],
        )

    if isinstance(raw.get("categories"), list):
        categories = [
            _normalize_category(category)
            for category in raw["categories"]
            if isinstance(category, dict)
        ]
    else:
        categories = _infer_categories(raw)

    return ExtractedMenuData(
        categories=categories,
        option_groups=_normalize_option_groups(raw),
        confidence=_normalize_confidence(raw.get("confidence")),
    )


def _infer_categories(raw: dict[str, Any]) -> list[ExtractedCategory]:
    categories = []
    for key, value in raw.items():
        if key in RESERVED_KEYS or not isinstance(value, list):
            continue
        name = format_category_name(key)
        items = [
            _normalize_item(item, name, recase=False) for item in value if isinstance(item, dict)
        ]
        categories.append(ExtractedCategory(name=name, items=items))
    return categories


def _normalize_category(category: dict[str, Any]) -> ExtractedCategory:
    name = normalize_text_case(str(category.get("name") or "")) or UNKNOWN_CATEGORY
    items = category.get("items")
    return ExtractedCategory(
        name=name,
        description=_optional_text(category.get("description")),
        items=[
            _normalize_item(item, name, recase=True)
            for item in (items if isinstance(items, list) else [])
            if isinstance(item, dict)
        ],
    )


def _normalize_item(item: dict[str, Any], category_name: str, recase: bool) -> ExtractedItem:
    raw_name = str(item.get("name") or "").strip()
    name = normalize_text_case(raw_name) if recase else raw_name
    allergens = item.get("allergens")
    declared_category = item.get("categoryName") or item.get("category_name")
    return ExtractedItem(
        name=name or UNKNOWN_ITEM,
        description=_optional_text(item.get("description")),
        price=max(_to_int(item.get("price")), 0),
        allergens=[str(a) for a in allergens] if isinstance(allergens, list) else None,
        category_name=str(declared_category) if declared_category else category_name,
    )


def _normalize_option_groups(raw: dict[str, Any]) -> list[ExtractedOptionGroup]:
    groups: Any = []
    for key in OPTION_GROUP_KEYS:
        if raw.get(key):
            groups = raw[key]
            break
    if not isinstance(groups, list):
        return []
    return [_normalize_option_group(group) for group in groups if isinstance(group, dict)]


def _normalize_option_group(group: dict[str, Any]) -> ExtractedOptionGroup:
    try:
        group_type = OptionGroupType(str(group.get("type") or OptionGroupType.SINGLE_SELECT.value))
    except ValueError:
        group_type = OptionGroupType.SINGLE_SELECT

    choices = group.get("choices")
    applies_to = group.get("appliesTo", group.get("applies_to"))
    is_required = group.get("isRequired", group.get("is_required", False))

    return ExtractedOptionGroup(
        name=str(group.get("name") or "").strip() or "Unknown Option",
        description=_optional_text(group.get("description")),
        type=group_type,
        is_required=bool(is_required),
        choices=[
            ExtractedOptionChoice(
                name=str(choice.get("name") or "").strip(),
                price_modifier=_to_int(choice.get("priceModifier", choice.get("price_modifier"))),
            )
            for choice in (choices if isinstance(choices, list) else [])
            if isinstance(choice, dict)
        ],
        applies_to=[str(name) for name in applies_to] if isinstance(applies_to, list) else [],
    )


def _normalize_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return DEFAULT_CONFIDENCE
    return min(max(float(value), 0.0), 1.0)


def _to_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    return int(round(value))


def _optional_text(value: Any) -> str | None:
    return str(value) if value else None
