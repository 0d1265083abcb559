"""Menu comparison engine.

Matches extracted entities against the live menu snapshot with normalized
Levenshtein similarity and classifies each as create, update or skip.
Pure and synchronous: no I/O, no shared state.
"""

from collections.abc import Callable, Sequence
from typing import TypeVar

from rapidfuzz.distance import Levenshtein

from menu_import_service.models.comparison_models import (
    CategoryComparison,
    ComparisonSummary,
    DiffAction,
    FieldChange,
    ItemComparison,
    MenuComparisonData,
    OptionGroupComparison,
)
from menu_import_service.models.extraction_models import (
    ExtractedCategory,
    ExtractedItem,
    ExtractedMenuData,
    ExtractedOptionGroup,
)
from menu_import_service.models.menu_models import (
    ExistingCategory,
    ExistingItem,
    ExistingMenuSnapshot,
    ExistingOptionGroup,
)
from menu_import_service.observability.decorators import traced

THRESHOLD_EXACT = 0.95
THRESHOLD_UPDATE = 0.70

# once names clearly match, the name alone decides the item score
NAME_DOMINANCE_THRESHOLD = 0.9
NAME_WEIGHT = 0.8
PRICE_WEIGHT = 0.2

T = TypeVar("T")


def calculate_similarity(first: str, second: str) -> float:
    """Similarity in [0, 1] over case-folded, trimmed strings."""
    a = first.strip().casefold()
    b = second.strip().casefold()

    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    return Levenshtein.normalized_similarity(a, b)


def calculate_price_similarity(extracted_price: int, existing_price: int) -> float:
    if existing_price <= 0:
        return 0.0
    return max(0.0, 1.0 - abs(extracted_price - existing_price) / existing_price)


def calculate_item_score(extracted: ExtractedItem, existing: ExistingItem) -> float:
    name_similarity = calculate_similarity(extracted.name, existing.name)
    if name_similarity > NAME_DOMINANCE_THRESHOLD:
        return name_similarity
    price_similarity = calculate_price_similarity(extracted.price, existing.price)
    return name_similarity * NAME_WEIGHT + price_similarity * PRICE_WEIGHT


def classify_action(score: float, has_field_changes: bool) -> DiffAction:
    """Map a best-match score to a diff action.

    Non-decreasing in *score*: a higher score never yields ``create`` where a
    lower one yielded ``update`` or ``skip``.
    """
    if score >= THRESHOLD_EXACT and not has_field_changes:
        return DiffAction.SKIP
    if score >= THRESHOLD_UPDATE:
        return DiffAction.UPDATE
    return DiffAction.CREATE


def find_best_match(
    candidates: Sequence[T], score: Callable[[T], float]
) -> tuple[T | None, float]:
    """Return the highest-scoring candidate; ties go to the first one found.

    No score floor applies: any non-empty candidate list yields a match.
    """
    best: T | None = None
    best_score = 0.0

    for candidate in candidates:
        candidate_score = score(candidate)
        if best is None or candidate_score > best_score:
            best = candidate
            best_score = candidate_score

    return best, best_score


def detect_item_changes(extracted: ExtractedItem, existing: ExistingItem) -> list[FieldChange]:
    """Compare price and description of a matched item."""
    changes: list[FieldChange] = []

    if extracted.price != existing.price:
        changes.append(FieldChange(field="price", old_value=existing.price, new_value=extracted.price))

    # None and empty string both mean "no description"
    if (extracted.description or None) != (existing.description or None):
        changes.append(
            FieldChange(
                field="description",
                old_value=existing.description,
                new_value=extracted.description,
            )
        )

    return changes


def compare_items(
    extracted_items: Sequence[ExtractedItem],
    existing_items: Sequence[ExistingItem],
) -> list[ItemComparison]:
    comparisons = []

    for extracted in extracted_items:
        match, score = find_best_match(
            existing_items, lambda existing, item=extracted: calculate_item_score(item, existing)
        )
        changes = detect_item_changes(extracted, match) if match is not None else []
        action = classify_action(score, bool(changes))

        comparisons.append(
            ItemComparison(
                extracted=extracted,
                existing_id=match.id if match else None,
                existing_name=match.name if match else None,
                action=action,
                match_score=score,
                changes=changes if action == DiffAction.UPDATE and changes else None,
            )
        )

    return comparisons


def compare_categories(
    extracted_categories: Sequence[ExtractedCategory],
    existing_categories: Sequence[ExistingCategory],
) -> list[CategoryComparison]:
    comparisons = []

    for extracted in extracted_categories:
        match, score = find_best_match(
            existing_categories,
            lambda existing, category=extracted: calculate_similarity(category.name, existing.name),
        )
        items = compare_items(extracted.items, match.items if match else [])
        has_item_changes = any(item.action != DiffAction.SKIP for item in items)

        comparisons.append(
            CategoryComparison(
                extracted=extracted,
                existing_id=match.id if match else None,
                existing_name=match.name if match else None,
                action=classify_action(score, has_item_changes),
                match_score=score,
                items=items,
            )
        )

    return comparisons


def compare_option_groups(
    extracted_groups: Sequence[ExtractedOptionGroup],
    existing_groups: Sequence[ExistingOptionGroup],
) -> list[OptionGroupComparison]:
    comparisons = []

    for extracted in extracted_groups:
        match, score = find_best_match(
            existing_groups,
            lambda existing, group=extracted: calculate_similarity(group.name, existing.name),
        )
        comparisons.append(
            OptionGroupComparison(
                extracted=extracted,
                existing_id=match.id if match else None,
                existing_name=match.name if match else None,
                action=classify_action(score, False),
                match_score=score,
            )
        )

    return comparisons


def summarize(
    extracted: ExtractedMenuData,
    categories: Sequence[CategoryComparison],
    option_groups: Sequence[OptionGroupComparison],
) -> ComparisonSummary:
    items = [item for category in categories for item in category.items]

    return ComparisonSummary(
        total_categories=len(extracted.categories),
        new_categories=sum(1 for c in categories if c.action == DiffAction.CREATE),
        updated_categories=sum(1 for c in categories if c.action == DiffAction.UPDATE),
        total_items=extracted.item_count,
        new_items=sum(1 for i in items if i.action == DiffAction.CREATE),
        updated_items=sum(1 for i in items if i.action == DiffAction.UPDATE),
        total_option_groups=len(extracted.option_groups),
        new_option_groups=sum(1 for o in option_groups if o.action == DiffAction.CREATE),
        updated_option_groups=sum(1 for o in option_groups if o.action == DiffAction.UPDATE),
    )


@traced("compare_menus", service_name="menu-import-svc")
def compare_menus(extracted: ExtractedMenuData, existing: ExistingMenuSnapshot) -> MenuComparisonData:
    """Reconcile an extracted menu against the live menu snapshot.

    Args:
        extracted: Output of the extraction engine
        existing: Read-only snapshot of the live menu

    Returns:
        MenuComparisonData with per-entity actions and a summary
    """
    categories = compare_categories(extracted.categories, existing.categories)
    option_groups = compare_option_groups(extracted.option_groups, existing.option_groups)

    return MenuComparisonData(
        extracted_menu=extracted,
        categories=categories,
        option_groups=option_groups,
        summary=summarize(extracted, categories, option_groups),
    )
