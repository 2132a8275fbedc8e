from fastapi import APIRouter, Query

from meadpilot.schemas.recipe import (
    AbvRead,
    AbvRequest,
    FruitPresetListResponse,
    FruitPresetRead,
    IngredientsCalculationRead,
    IngredientsCalculationRequest,
    RecipeDraft,
    RecipeRecord,
    TargetCalculationRead,
    TargetCalculationRequest,
)
from meadpilot.services.fruit_sugar import list_fruit_presets
from meadpilot.services.gravity_log import format_gravity, parse_gravity
from meadpilot.services.recipe_builder import build_recipe_record
from meadpilot.services.recipe_calculator import sg_to_abv, solve_ingredients, solve_target

router = APIRouter(prefix="/calculator", tags=["calculator"])


@router.post("/target", response_model=TargetCalculationRead)
def calculate_target(payload: TargetCalculationRequest) -> TargetCalculationRead:
    result = solve_target(payload.volume_liters, payload.target_abv)
    return TargetCalculationRead(
        og=result.og,
        honey_needed_kg=result.honey_needed_kg,
        total_points=round(result.total_points, 2),
    )


@router.post("/ingredients", response_model=IngredientsCalculationRead)
def calculate_ingredients(payload: IngredientsCalculationRequest) -> IngredientsCalculationRead:
    result = solve_ingredients(payload.volume_liters, payload.honey_kg, payload.fruits)
    return IngredientsCalculationRead(
        og=result.og,
        abv=result.abv,
        total_points=round(result.total_points, 2),
        gravity_points=round(result.gravity_points, 2),
    )


@router.get("/fruits", response_model=FruitPresetListResponse)
def get_fruit_presets(include_custom: bool = Query(default=True)) -> FruitPresetListResponse:
    presets = [
        FruitPresetRead(name=preset.name, sugar_percent=preset.sugar_percent)
        for preset in list_fruit_presets(include_custom=include_custom)
    ]
    return FruitPresetListResponse(count=len(presets), items=presets)


@router.post("/abv", response_model=AbvRead)
def calculate_abv(payload: AbvRequest) -> AbvRead:
    og = format_gravity(parse_gravity(payload.og))
    fg = format_gravity(parse_gravity(payload.fg))
    return AbvRead(og=og, fg=fg, abv=sg_to_abv(og, fg))


@router.post("/recipe", response_model=RecipeRecord, response_model_exclude_none=True)
def preview_recipe(payload: RecipeDraft) -> RecipeRecord:
    return build_recipe_record(payload)
