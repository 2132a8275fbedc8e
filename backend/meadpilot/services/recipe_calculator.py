from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from meadpilot.schemas.recipe import FruitAddition
from meadpilot.services.units import kg_to_lbs, liters_to_gallons

HONEY_PPG = 35
SUCROSE_PPG = 46
ABV_FACTOR = 131.25


@dataclass(frozen=True)
class TargetCalculation:
    og: float
    honey_needed_kg: float
    total_points: float


@dataclass(frozen=True)
class IngredientsCalculation:
    og: float
    abv: float
    total_points: float
    gravity_points: float


def safe_number(value: object) -> float:
    """Coerce calculator input to a float; missing or unparseable values become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return 0.0
    if math.isnan(number):
        return 0.0
    return number


def sg_to_abv(og: object, fg: object) -> float:
    return round((safe_number(og) - safe_number(fg)) * ABV_FACTOR, 1)


def abv_to_og(abv: object) -> float:
    return 1 + safe_number(abv) / ABV_FACTOR


def solve_target(volume_liters: object, target_abv: object) -> TargetCalculation:
    volume_gal = liters_to_gallons(safe_number(volume_liters))
    target_og = abv_to_og(target_abv)
    total_points = (target_og - 1) * 1000 * volume_gal

    honey_lbs = total_points / HONEY_PPG
    honey_kg = honey_lbs / kg_to_lbs(1)

    return TargetCalculation(
        og=round(target_og, 3),
        honey_needed_kg=round(max(0.0, honey_kg), 2),
        total_points=total_points,
    )


def fruit_points(fruit: FruitAddition) -> float:
    # sugar mass contributes at sucrose PPG
    fruit_lbs = kg_to_lbs(safe_number(fruit.amount))
    sugar_fraction = safe_number(fruit.sugar_percent) / 100
    return fruit_lbs * SUCROSE_PPG * sugar_fraction


def solve_ingredients(
    volume_liters: object,
    honey_kg: object,
    fruits: Iterable[FruitAddition] = (),
) -> IngredientsCalculation:
    volume_gal = liters_to_gallons(safe_number(volume_liters))
    honey_points = kg_to_lbs(safe_number(honey_kg)) * HONEY_PPG
    total_points = honey_points + sum(fruit_points(fruit) for fruit in fruits)

    gravity_points = total_points / volume_gal if volume_gal > 0 else 0.0
    estimated_og = 1 + gravity_points / 1000

    return IngredientsCalculation(
        og=round(estimated_og, 3),
        abv=sg_to_abv(estimated_og, 1.000),
        total_points=total_points,
        gravity_points=gravity_points,
    )
