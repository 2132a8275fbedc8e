from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RecipeMode = Literal["target", "ingredients"]


class DocumentModel(BaseModel):
    """Model stored as a camelCase document in the remote store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class FruitAddition(DocumentModel):
    name: str = ""
    # None means "not entered yet"; the solver reads it as 0.
    amount: float | None = 0.0
    sugar_percent: float | None = 10.0


class RecipeDraft(DocumentModel):
    """Calculator input as the user is editing it."""

    name: str = ""
    mode: RecipeMode = "target"
    volume: float | None = 5.0
    target_abv: float | None = 12.0
    honey_amount: float | None = 1.5
    fruits: list[FruitAddition] = Field(default_factory=list)
    id: str | None = None


class RecipeRecord(DocumentModel):
    name: str
    mode: RecipeMode
    volume: float
    target_abv: float
    honey_amount: float
    fruits: list[FruitAddition] = Field(default_factory=list)
    calculated_og: str
    calculated_abv: str
    id: str | None = None


class TargetCalculationRequest(BaseModel):
    volume_liters: float = Field(gt=0)
    target_abv: float = Field(ge=0)


class TargetCalculationRead(BaseModel):
    og: float
    honey_needed_kg: float
    total_points: float


class IngredientsCalculationRequest(BaseModel):
    volume_liters: float = Field(gt=0)
    honey_kg: float = Field(ge=0)
    fruits: list[FruitAddition] = Field(default_factory=list, max_length=50)


class IngredientsCalculationRead(BaseModel):
    og: float
    abv: float
    total_points: float
    gravity_points: float


class FruitPresetRead(BaseModel):
    name: str
    sugar_percent: float


class FruitPresetListResponse(BaseModel):
    count: int
    items: list[FruitPresetRead]


class AbvRequest(BaseModel):
    og: float
    fg: float


class AbvRead(BaseModel):
    og: str
    fg: str
    abv: float
