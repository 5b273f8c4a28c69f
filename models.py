"""
Data model for the bar cutting planner.

Everything the engine hands back is a pydantic model so the API layer can use
the same objects as its response schema.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_STOCK_LENGTH = 12000  # mm
DEFAULT_WELD_LOSS = 10  # mm lost per weld seam
DEFAULT_MIN_FIRE_LENGTH = 100  # mm
MIN_FIRE_FLOOR = 1  # mm

MatchPolicy = Literal["first", "best"]


class CuttingPlanError(ValueError):
    """Base class for errors reported by the cutting planner."""


class InvalidRequest(CuttingPlanError):
    """A part request can never be cut from the configured stock."""


class InvalidConfiguration(CuttingPlanError):
    """Stock length, weld loss or minimum offcut length is out of range."""


class OptimizerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    stock_length: int = Field(default=DEFAULT_STOCK_LENGTH, description="Length of a stock bar in mm")
    weld_loss: int = Field(default=DEFAULT_WELD_LOSS, description="Material consumed by one weld seam in mm")
    min_fire_length: int = Field(default=DEFAULT_MIN_FIRE_LENGTH, description="Shortest leftover kept as a reusable offcut in mm")
    match_policy: MatchPolicy = Field(default="first", description="'first' accepts the first weld combination in tolerance, 'best' the closest one")


class PartRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    position: str
    length: int
    quantity: int = 1


class UnitDemand(BaseModel):
    """One piece that has to be produced, either cut from a bar or welded."""
    model_config = ConfigDict(frozen=True)

    label: str
    length: int
    origin: str


class Cut(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    length: int


class StockBar(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    cuts: List[Cut]
    remaining_length: int
    efficiency_percent: int
    welded_offcut: Optional[str] = Field(default=None, description="Name of the offcut taken from this bar's leftover into a weld")


class Offcut(BaseModel):
    name: str
    length: int
    source_bar_index: int
    consumed: bool = False


class WeldPiece(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    length: int


class WeldAssembly(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    target_length: int
    actual_length: int
    tolerance_delta: int
    pieces: List[WeldPiece]
    method: Literal["double", "triple"]
    demand_label: Optional[str] = Field(default=None, description="Label of the unit demand this assembly replaces")


class OptimizationResult(BaseModel):
    stock_bars: List[StockBar] = Field(default_factory=list)
    offcuts: List[Offcut] = Field(default_factory=list)
    weld_assemblies: List[WeldAssembly] = Field(default_factory=list)
    total_stock_bars: int = 0
    material_utilization_percent: int = 0
