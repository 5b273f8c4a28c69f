from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional, Union
import logging
import sys

from models import (
    DEFAULT_MIN_FIRE_LENGTH,
    DEFAULT_STOCK_LENGTH,
    DEFAULT_WELD_LOSS,
    MIN_FIRE_FLOOR,
    MatchPolicy,
    OptimizationResult,
    OptimizerConfig,
    PartRequest,
)
from solver import CuttingOptimizer, expand_demand, pack_bars
from exact import minimum_stock_bars
from dxf_export import export_dxf
from parsing import make_part, parse_bulk, parse_compact, sort_parts

# Configure logging to stdout so we can see it in the terminal
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

app = FastAPI()

# Enable CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PartIn(BaseModel):
    position: str = Field(..., min_length=1, description="Unique position label")
    length: int = Field(..., gt=0, description="Piece length in mm")
    quantity: int = Field(default=1, gt=0, description="Number of pieces")


class OptimizeRequest(BaseModel):
    stock_length: int = Field(default=DEFAULT_STOCK_LENGTH, gt=0, description="Length of a stock bar in mm")
    weld_loss: int = Field(default=DEFAULT_WELD_LOSS, ge=0, description="Material lost per weld seam in mm")
    min_fire_length: int = Field(default=DEFAULT_MIN_FIRE_LENGTH, ge=MIN_FIRE_FLOOR, description="Shortest reusable offcut in mm")
    match_policy: MatchPolicy = Field(default="first", description="Weld combination policy")
    parts: List[PartIn] = Field(default_factory=list, description="Parts to cut")
    bulk: Optional[str] = Field(default=None, description="Extra parts, one 'POSITION LENGTH [QUANTITY]' per line")
    compare_exact: bool = Field(default=False, description="Also compute the exact minimum bar count")

    @field_validator('parts')
    @classmethod
    def validate_parts(cls, v):
        seen = set()
        for part in v:
            if part.position in seen:
                raise ValueError(f"Position {part.position} is listed more than once")
            seen.add(part.position)
        return v

    def optimizer_config(self) -> OptimizerConfig:
        return OptimizerConfig(
            stock_length=self.stock_length,
            weld_loss=self.weld_loss,
            min_fire_length=self.min_fire_length,
            match_policy=self.match_policy,
        )

    def part_requests(self) -> List[PartRequest]:
        requests = [PartRequest(position=p.position, length=p.length, quantity=p.quantity) for p in self.parts]
        if self.bulk and self.bulk.strip():
            requests += parse_bulk(self.bulk, existing=requests)
        return sort_parts(requests)


class OptimizeResponse(OptimizationResult):
    exact_stock_bars: Optional[int] = Field(default=None, description="Exact bar count for cutting every piece from stock without welding")


class ParseRequest(BaseModel):
    text: str = Field(..., description="Part list text")
    format: Literal["lines", "compact"] = Field(default="lines", description="'lines' for POSITION LENGTH [QUANTITY], 'compact' for 7500x3, 750x2")


class ParseResponse(BaseModel):
    parts: List[PartRequest]
    total_pieces: int


class AddPartRequest(BaseModel):
    parts: List[PartRequest] = Field(default_factory=list, description="Parts already listed")
    position: str = Field(..., description="Position label of the new part")
    length: Union[int, str] = Field(..., description="Piece length in mm, as entered")
    quantity: Union[int, str, None] = Field(default=1, description="Number of pieces, as entered; empty means 1")


def run_optimization(request: OptimizeRequest) -> OptimizeResponse:
    requests = request.part_requests()
    result = CuttingOptimizer(request.optimizer_config()).optimize(requests)

    # exact count of bars for cutting every piece from stock, no welding;
    # bounded by the greedy plan before welds replaced any piece
    exact = None
    if request.compare_exact and requests:
        demand = expand_demand(requests)
        greedy_bars = len(pack_bars(demand, request.stock_length))
        exact = minimum_stock_bars([unit.length for unit in demand], request.stock_length, upper_bound=greedy_bars)

    return OptimizeResponse(**result.model_dump(), exact_stock_bars=exact)


@app.get("/")
async def root():
    return {"message": "Bar Cutting Planner API"}


@app.get("/api")
async def api_root():
    return {"message": "Bar Cutting Planner API"}


@app.post("/api/parse", response_model=ParseResponse)
async def parse(request: ParseRequest):
    """
    Turn a pasted part list into validated parts.
    """
    try:
        if request.format == "compact":
            parts = parse_compact(request.text)
        else:
            parts = sort_parts(parse_bulk(request.text))
        return ParseResponse(parts=parts, total_pieces=sum(p.quantity for p in parts))
    except ValueError as e:
        logger.error(f"❌ Parse error: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/parts", response_model=ParseResponse)
async def add_part(request: AddPartRequest):
    """
    Add a single entry to a part list.
    """
    try:
        part = make_part(request.position, request.length, request.quantity, existing=request.parts)
        parts = sort_parts(request.parts + [part])
        return ParseResponse(parts=parts, total_pieces=sum(p.quantity for p in parts))
    except ValueError as e:
        logger.error(f"❌ Part entry error: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/optimize", response_model=OptimizeResponse)
async def optimize(request: OptimizeRequest):
    """
    Compute the cutting plan, including welded offcut assemblies.
    """
    try:
        logger.info("📥 Received optimize request")
        result = run_optimization(request)
        logger.info("📤 Sending response to client")
        return result
    except ValueError as e:
        logger.error(f"❌ Validation error: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"❌ Unexpected error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error computing cutting plan: {str(e)}")


@app.post("/api/optimize/dxf")
async def optimize_dxf(request: OptimizeRequest):
    """
    Compute the cutting plan and return it as a DXF drawing.
    """
    try:
        logger.info("📥 Received DXF export request")
        result = CuttingOptimizer(request.optimizer_config()).optimize(request.part_requests())
        content = export_dxf(result, request.stock_length)
    except ValueError as e:
        logger.error(f"❌ Validation error: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"❌ Unexpected error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error exporting cutting plan: {str(e)}")

    return Response(
        content=content,
        media_type="application/dxf",
        headers={"Content-Disposition": 'attachment; filename="cutting_plan.dxf"'},
    )
