from __future__ import annotations

from meadpilot.core.errors import ValidationError
from meadpilot.schemas.recipe import FruitAddition, RecipeDraft, RecipeRecord
from meadpilot.services.document_store import SERVER_TIMESTAMP, Document
from meadpilot.services.recipe_calculator import safe_number, solve_ingredients, solve_target

INITIAL_BATCH_STATUS = "brewing"


def _persistable_fruits(fruits: list[FruitAddition]) -> list[FruitAddition]:
    return [
        FruitAddition(
            name=fruit.name,
            amount=safe_number(fruit.amount),
            sugar_percent=safe_number(fruit.sugar_percent),
        )
        for fruit in fruits
        if fruit.name.strip()
    ]


def calculated_strength(draft: RecipeDraft) -> tuple[str, str]:
    """Return the (og, abv) strings stored alongside a recipe."""
    if draft.mode == "target":
        result = solve_target(draft.volume, draft.target_abv)
        return f"{result.og:.3f}", f"{safe_number(draft.target_abv):.1f}"

    result = solve_ingredients(draft.volume, draft.honey_amount, draft.fruits)
    return f"{result.og:.3f}", f"{result.abv:.1f}"


def build_recipe_record(draft: RecipeDraft) -> RecipeRecord:
    calculated_og, calculated_abv = calculated_strength(draft)
    return RecipeRecord(
        name=draft.name,
        mode=draft.mode,
        volume=safe_number(draft.volume),
        target_abv=safe_number(draft.target_abv),
        honey_amount=safe_number(draft.honey_amount),
        fruits=_persistable_fruits(draft.fruits),
        calculated_og=calculated_og,
        calculated_abv=calculated_abv,
        id=draft.id,
    )


def _require_name(draft: RecipeDraft, message: str) -> None:
    if not draft.name.strip():
        raise ValidationError(message, field="name")


def build_favorite_document(draft: RecipeDraft) -> Document:
    _require_name(draft, "Please name your recipe before saving.")

    document = build_recipe_record(draft).to_document()
    # a favourite is always a new document, even when edited from another one
    document.pop("id", None)
    document["timestamp"] = SERVER_TIMESTAMP
    return document


def build_batch_document(draft: RecipeDraft) -> Document:
    _require_name(draft, "Please name your batch before starting.")

    document = build_recipe_record(draft).to_document()
    original_recipe_id = document.pop("id", None)
    if original_recipe_id:
        document["originalRecipeId"] = original_recipe_id

    document["startDate"] = SERVER_TIMESTAMP
    document["logs"] = []
    document["status"] = INITIAL_BATCH_STATUS
    return document


LOAD_DEFAULTS = {"volume": 5.0, "targetAbv": 12.0, "honeyAmount": 1.5}


def draft_from_document(doc_id: str, document: Document) -> RecipeDraft:
    """Load a saved favourite back into the calculator, remembering where it came from."""
    # favourites saved without a mode were built from ingredients
    payload = {"mode": "ingredients", **document, "id": doc_id}
    for key, default in LOAD_DEFAULTS.items():
        # zero, blank and missing amounts all reload as the calculator default
        if not safe_number(payload.get(key)):
            payload[key] = default
    return RecipeDraft.model_validate(payload)
