from __future__ import annotations

from dataclasses import dataclass

from meadpilot.schemas.recipe import FruitAddition

CUSTOM_PRESET_NAME = "Custom"
DEFAULT_SUGAR_PERCENT = 10.0


@dataclass(frozen=True)
class FruitPreset:
    name: str
    sugar_percent: float


# Approximate sugar content by weight.
_FRUIT_PRESETS: tuple[FruitPreset, ...] = (
    FruitPreset("Apple", 13),
    FruitPreset("Apricot", 9),
    FruitPreset("Blackberry", 8),
    FruitPreset("Blueberry", 12),
    FruitPreset("Cherry (Sweet)", 14),
    FruitPreset("Cherry (Tart)", 10),
    FruitPreset("Cranberry", 4),
    FruitPreset("Currant (Black)", 10),
    FruitPreset("Dates (Dried)", 65),
    FruitPreset("Fig (Fresh)", 16),
    FruitPreset("Fig (Dried)", 55),
    FruitPreset("Grape (Red)", 16),
    FruitPreset("Grape (White)", 16),
    FruitPreset("Mango", 14),
    FruitPreset("Orange", 9),
    FruitPreset("Peach", 8),
    FruitPreset("Pear", 10),
    FruitPreset("Pineapple", 13),
    FruitPreset("Plum", 10),
    FruitPreset("Raisins", 60),
    FruitPreset("Raspberry", 5),
    FruitPreset("Strawberry", 6),
    FruitPreset(CUSTOM_PRESET_NAME, DEFAULT_SUGAR_PERCENT),
)

_PRESETS_BY_NAME = {preset.name: preset for preset in _FRUIT_PRESETS}


def list_fruit_presets(*, include_custom: bool = True) -> list[FruitPreset]:
    if include_custom:
        return list(_FRUIT_PRESETS)
    return [preset for preset in _FRUIT_PRESETS if preset.name != CUSTOM_PRESET_NAME]


def resolve_fruit_preset(name: str) -> FruitPreset | None:
    return _PRESETS_BY_NAME.get(name)


def preset_for_fruit(fruit: FruitAddition) -> FruitPreset:
    """Preset whose name the fruit carries, or Custom for free-text names."""
    preset = _PRESETS_BY_NAME.get(fruit.name)
    if preset is None:
        return _PRESETS_BY_NAME[CUSTOM_PRESET_NAME]
    return preset


def new_fruit_addition() -> FruitAddition:
    return FruitAddition(name="", amount=0.0, sugar_percent=DEFAULT_SUGAR_PERCENT)


def apply_fruit_preset(fruit: FruitAddition, preset_name: str) -> FruitAddition:
    preset = resolve_fruit_preset(preset_name)
    if preset is None:
        return fruit
    if preset.name == CUSTOM_PRESET_NAME:
        return fruit.model_copy(update={"name": ""})
    return fruit.model_copy(update={"name": preset.name, "sugar_percent": preset.sugar_percent})
