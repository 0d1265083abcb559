"""Content moderation for AI-extracted menu text.

Any blocked match replaces the whole field with a fixed placeholder so no
part of an offensive term leaks into the reviewed menu.
"""

import re

from menu_import_service.models.extraction_models import (
    ExtractedCategory,
    ExtractedItem,
    ExtractedMenuData,
    ExtractedOptionChoice,
    ExtractedOptionGroup,
)

FILTERED_CATEGORY = "[Filtered Category]"
FILTERED_ITEM = "[Filtered Item]"
FILTERED_OPTION = "[Filtered Option]"
FILTERED_CHOICE = "[Filtered Choice]"
FILTERED_TEXT = "[Filtered]"

BLOCKED_CONTENT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bn[i1]gg[ae3]r?s?\b",
        r"\bf[a@]gg?[o0]t?s?\b",
        r"\bk[i1]k[e3]s?\b",
        r"\bch[i1]nks?\b",
        r"\bsp[i1]cs?\b",
        r"\bw[e3]tb[a@]cks?\b",
        r"\bf+u+c+k+",
        r"\bs+h+[i1]+t+(?!ake)",  # not "shiitake"
        r"\bc+u+n+t+",
        r"\ba+s+s+h+o+l+e+",
    )
)


def contains_blocked_content(text: str | None) -> bool:
    if not text:
        return False
    return any(pattern.search(text) for pattern in BLOCKED_CONTENT_PATTERNS)


def _filtered(text: str, placeholder: str) -> str:
    return placeholder if contains_blocked_content(text) else text


def _filtered_description(text: str | None) -> str | None:
    return FILTERED_TEXT if contains_blocked_content(text) else text


def filter_extraction(extraction: ExtractedMenuData) -> ExtractedMenuData:
    """Return a copy of the extraction with blocked fields replaced."""
    categories = [
        ExtractedCategory(
            name=_filtered(category.name, FILTERED_CATEGORY),
            description=_filtered_description(category.description),
            items=[
                ExtractedItem(
                    name=_filtered(item.name, FILTERED_ITEM),
                    description=_filtered_description(item.description),
                    price=item.price,
                    allergens=item.allergens,
                    category_name=_filtered(item.category_name, FILTERED_CATEGORY),
                )
                for item in category.items
            ],
        )
        for category in extraction.categories
    ]

    option_groups = [
        ExtractedOptionGroup(
            name=_filtered(group.name, FILTERED_OPTION),
            description=_filtered_description(group.description),
            type=group.type,
            is_required=group.is_required,
            choices=[
                ExtractedOptionChoice(
                    name=_filtered(choice.name, FILTERED_CHOICE),
                    price_modifier=choice.price_modifier,
                )
                for choice in group.choices
            ],
            applies_to=group.applies_to,
        )
        for group in extraction.option_groups
    ]

    return ExtractedMenuData(
        categories=categories,
        option_groups=option_groups,
        confidence=extraction.confidence,
    )
