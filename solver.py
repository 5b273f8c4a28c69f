"""
Cutting plan engine for linear stock bars.

Pieces are packed into stock bars largest first. Leftovers long enough to be
useful become offcuts, and the weld search tries to turn pairs or triples of
offcuts into required pieces so that fewer bars have to be cut.
"""
import logging
import time
from typing import Dict, List, Optional, Sequence, Set

from models import (
    MIN_FIRE_FLOOR,
    Cut,
    InvalidConfiguration,
    InvalidRequest,
    Offcut,
    OptimizationResult,
    OptimizerConfig,
    PartRequest,
    StockBar,
    UnitDemand,
    WeldAssembly,
)
from welding import WeldAssemblySearch

logger = logging.getLogger(__name__)


def rounded_percent(part: int, whole: int) -> int:
    """Integer percentage, halves rounded up."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def check_config(config: OptimizerConfig) -> OptimizerConfig:
    if config.stock_length <= 0:
        raise InvalidConfiguration(f"Stock length must be positive, got {config.stock_length}")
    if config.weld_loss < 0:
        raise InvalidConfiguration(f"Weld loss cannot be negative, got {config.weld_loss}")
    if config.min_fire_length < MIN_FIRE_FLOOR:
        raise InvalidConfiguration(
            f"Minimum offcut length must be at least {MIN_FIRE_FLOOR}mm, got {config.min_fire_length}"
        )
    if config.match_policy not in ("first", "best"):
        raise InvalidConfiguration(f"Unknown weld match policy {config.match_policy!r}")
    return config


def validate_requests(requests: Sequence[PartRequest], stock_length: int) -> None:
    for request in requests:
        if request.length <= 0:
            raise InvalidRequest(f"{request.position}: piece length must be positive, got {request.length}")
        if request.quantity <= 0:
            raise InvalidRequest(f"{request.position}: quantity must be positive, got {request.quantity}")
        if request.length > stock_length:
            raise InvalidRequest(
                f"{request.position}: piece length {request.length}mm exceeds stock length {stock_length}mm"
            )


def expand_demand(requests: Sequence[PartRequest]) -> List[UnitDemand]:
    """One UnitDemand per requested piece, longest first (stable for equal lengths)."""
    demand = [
        UnitDemand(label=f"{request.position}-{i + 1}", length=request.length, origin=request.position)
        for request in requests
        for i in range(request.quantity)
    ]
    demand.sort(key=lambda unit: unit.length, reverse=True)
    return demand


def distinct_targets(demand: Sequence[UnitDemand]) -> List[int]:
    return sorted({unit.length for unit in demand}, reverse=True)


def make_bar(bar_id: int, cuts: List[Cut], stock_length: int) -> StockBar:
    used = sum(cut.length for cut in cuts)
    return StockBar(
        id=bar_id,
        cuts=cuts,
        remaining_length=stock_length - used,
        efficiency_percent=rounded_percent(used, stock_length),
    )


def pack_bars(demand: Sequence[UnitDemand], stock_length: int, first_id: int = 1) -> List[StockBar]:
    """
    Greedy largest-fits-first packing.

    A bar takes every still unplaced unit that fits its remaining length,
    scanning the demand in order, until a full pass places nothing. Then the
    next bar is opened.

    Args:
        demand: Units to place, already in packing order
        stock_length: Length of each stock bar in mm
        first_id: Id given to the first bar opened

    Returns:
        The bars in the order they were opened
    """
    pool = list(demand)
    bars: List[StockBar] = []

    while pool:
        remaining = stock_length
        cuts: List[Cut] = []
        placed = True
        while placed:
            placed = False
            unplaced = []
            for unit in pool:
                if unit.length <= remaining:
                    cuts.append(Cut(label=unit.label, length=unit.length))
                    remaining -= unit.length
                    placed = True
                else:
                    unplaced.append(unit)
            pool = unplaced

        if not cuts:
            unit = pool[0]
            raise InvalidRequest(f"{unit.origin}: piece length {unit.length}mm exceeds stock length {stock_length}mm")

        bar = make_bar(first_id + len(bars), cuts, stock_length)
        bars.append(bar)
        logger.debug(
            f"  ✂️ Bar #{bar.id}: {len(bar.cuts)} cuts, {bar.efficiency_percent}% used, leftover {bar.remaining_length}mm"
        )

    return bars


def collect_offcuts(bars: Sequence[StockBar], min_fire_length: int) -> List[Offcut]:
    """Leftovers of at least ``min_fire_length``, named after their bar position."""
    offcuts = [
        Offcut(name=f"F{index + 1}", length=bar.remaining_length, source_bar_index=index)
        for index, bar in enumerate(bars)
        if bar.welded_offcut is None and bar.remaining_length >= min_fire_length
    ]
    logger.info(f"🔥 {len(offcuts)} offcuts: {', '.join(f'{o.name}:{o.length}mm' for o in offcuts) or '-'}")
    return offcuts


class PlanReconciler:
    """
    Turns the tentative greedy plan plus the accepted welds into the final plan.

    Every weld replaces one cut of its target length. That cut is released
    from the last tentative bar holding one, and the bar must come after
    every bar whose leftover feeds a weld. A bar that loses a cut is
    dissolved, and its other cuts are packed again into fresh bars appended
    at the end. Source bars therefore keep their positions and the offcut
    names used in the welds stay valid.
    """

    def __init__(self, bars: List[StockBar], demand: List[UnitDemand], config: OptimizerConfig):
        self.bars = bars
        self.demand = demand
        self.config = config
        self.sources: Set[int] = set()
        self.released: Dict[int, List[str]] = {}

    def claim(self, target_length: int, offcuts: Sequence[Offcut]) -> Optional[str]:
        last_source = max(self.sources | {offcut.source_bar_index for offcut in offcuts})
        if self.released and min(self.released) <= last_source:
            return None

        for index in range(len(self.bars) - 1, last_source, -1):
            taken = self.released.get(index, [])
            for cut in reversed(self.bars[index].cuts):
                if cut.length == target_length and cut.label not in taken:
                    self.released.setdefault(index, []).append(cut.label)
                    self.sources.update(offcut.source_bar_index for offcut in offcuts)
                    return cut.label
        return None

    def build(self, pool: Sequence[Offcut], assemblies: List[WeldAssembly]) -> OptimizationResult:
        welded = {offcut.source_bar_index: offcut.name for offcut in pool if offcut.consumed}
        released = {label for labels in self.released.values() for label in labels}

        kept: List[StockBar] = []
        residual_labels: Set[str] = set()
        for index, bar in enumerate(self.bars):
            if index in self.released:
                residual_labels.update(cut.label for cut in bar.cuts if cut.label not in released)
                continue
            kept.append(bar.model_copy(update={"id": len(kept) + 1, "welded_offcut": welded.get(index)}))

        residual = [unit for unit in self.demand if unit.label in residual_labels]
        if self.released:
            logger.info(
                f"♻️ {len(self.released)} bars dissolved, repacking {len(residual)} remaining pieces"
            )
        bars = kept + pack_bars(residual, self.config.stock_length, first_id=len(kept) + 1)

        utilization = 0
        if bars:
            total = sum(bar.efficiency_percent for bar in bars)
            utilization = (2 * total + len(bars)) // (2 * len(bars))

        return OptimizationResult(
            stock_bars=bars,
            offcuts=collect_offcuts(bars, self.config.min_fire_length),
            weld_assemblies=assemblies,
            total_stock_bars=len(bars),
            material_utilization_percent=utilization,
        )


class CuttingOptimizer:
    """
    Entry point of the engine.

    The configuration is a frozen value. The setters swap in a validated
    copy, and ``optimize`` reads the configuration once when it starts.
    """

    def __init__(self, config: Optional[OptimizerConfig] = None):
        self.config = check_config(config or OptimizerConfig())

    def set_stock_length(self, length: int) -> None:
        self.config = check_config(self.config.model_copy(update={"stock_length": length}))

    def set_weld_loss(self, loss: int) -> None:
        self.config = check_config(self.config.model_copy(update={"weld_loss": loss}))

    def set_min_fire_length(self, length: int) -> None:
        self.config = check_config(self.config.model_copy(update={"min_fire_length": length}))

    def optimize(self, requests: Sequence[PartRequest]) -> OptimizationResult:
        """
        Build the cutting plan for ``requests``.

        Raises:
            InvalidRequest: if a piece has a non-positive length or quantity,
                or is longer than a stock bar
        """
        config = self.config
        start_time = time.time()

        logger.info("=" * 60)
        logger.info("🚀 Starting cutting plan optimization")
        logger.info(f"📏 Stock length: {config.stock_length}mm, weld loss: {config.weld_loss}mm, "
                    f"min offcut: {config.min_fire_length}mm")

        if not requests:
            logger.info("📭 No parts requested, returning empty plan")
            return OptimizationResult()

        validate_requests(requests, config.stock_length)
        demand = expand_demand(requests)
        logger.info(f"📊 Total pieces to cut: {len(demand)}")

        bars = pack_bars(demand, config.stock_length)
        logger.info(f"📦 Greedy packing opened {len(bars)} bars")

        pool = collect_offcuts(bars, config.min_fire_length)
        reconciler = PlanReconciler(bars, demand, config)
        assemblies: List[WeldAssembly] = []
        if len(pool) >= 2:
            search = WeldAssemblySearch(config.weld_loss, config.match_policy, claim=reconciler.claim)
            assemblies = search.search(pool, distinct_targets(demand))

        result = reconciler.build(pool, assemblies)

        elapsed_time = time.time() - start_time
        logger.info("📋 Results:")
        logger.info(f"   - Stock bars: {result.total_stock_bars}")
        logger.info(f"   - Weld assemblies: {len(result.weld_assemblies)}")
        logger.info(f"   - Offcuts left: {len(result.offcuts)}")
        logger.info(f"   - Utilization: {result.material_utilization_percent}%")
        logger.info(f"⏱️  Total time: {elapsed_time:.3f} seconds")
        logger.info("=" * 60)
        return result


def optimize(requests: Sequence[PartRequest], config: Optional[OptimizerConfig] = None) -> OptimizationResult:
    return CuttingOptimizer(config).optimize(requests)
