"""
Weld assembly search.

Leftover offcuts are joined end to end (two or three at a time) to stand in
for one required piece. Every seam eats ``weld_loss`` millimetres, and the
welded length only has to land inside a tolerance band that widens with the
target length.
"""
import logging
from itertools import combinations
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from models import MatchPolicy, Offcut, WeldAssembly, WeldPiece

logger = logging.getLogger(__name__)

# Three-piece welds are only tried for targets longer than this (mm)
TRIPLE_WELD_THRESHOLD = 6000

# claim(target_length, offcuts) -> label of the demand the weld replaces,
# "" when no particular demand is tracked, or None to reject the combination
ClaimFn = Callable[[int, Sequence[Offcut]], Optional[str]]


def adaptive_tolerance(length: int) -> int:
    """Allowed deviation (mm) between a welded length and its target."""
    if length <= 1000:
        return 50
    if length <= 3000:
        return 100
    if length <= 6000:
        return 150
    return 200


def welded_length(pieces: Sequence, weld_loss: int) -> int:
    return sum(piece.length for piece in pieces) - weld_loss * (len(pieces) - 1)


def _claim_anything(target_length: int, offcuts: Sequence[Offcut]) -> Optional[str]:
    return ""


class WeldAssemblySearch:
    """
    Match offcuts against target lengths.

    Targets are visited in the order given (callers pass them longest first)
    and each target gets at most one assembly per search. Pairs are tried
    before triples. Under the ``"first"`` policy the first combination in
    pool order that lands within tolerance wins. Under ``"best"`` the
    combination with the smallest deviation wins, ties going to pool order.
    In both cases a combination only wins if ``claim`` accepts it, so "first"
    means the first match that can be committed, not the first in tolerance.
    """

    def __init__(self, weld_loss: int, match_policy: MatchPolicy = "first", claim: Optional[ClaimFn] = None):
        self.weld_loss = weld_loss
        self.match_policy = match_policy
        self.claim = claim or _claim_anything

    def search(self, pool: List[Offcut], targets: Iterable[int]) -> List[WeldAssembly]:
        """
        Run one search pass over ``pool``.

        Offcuts used by an accepted assembly are marked ``consumed`` in place
        and are not offered to later targets.
        """
        assemblies: List[WeldAssembly] = []
        for target in targets:
            assembly = self._weld_target(pool, target, len(assemblies) + 1)
            if assembly is not None:
                assemblies.append(assembly)

        logger.info(f"🔧 {len(assemblies)} weld assemblies from {len(pool)} offcuts")
        return assemblies

    def _weld_target(self, pool: List[Offcut], target: int, number: int) -> Optional[WeldAssembly]:
        available = [offcut for offcut in pool if not offcut.consumed]
        degrees = (2, 3) if target > TRIPLE_WELD_THRESHOLD else (2,)

        match = None
        for degree in degrees:
            if len(available) < degree:
                break
            match = self._find_match(available, target, degree)
            if match is not None:
                break
        if match is None:
            logger.debug(f"  no offcut combination for {target}mm")
            return None

        combo, demand_label = match
        for offcut in combo:
            offcut.consumed = True

        actual = welded_length(combo, self.weld_loss)
        assembly = WeldAssembly(
            label=f"W{number}-{target}",
            target_length=target,
            actual_length=actual,
            tolerance_delta=actual - target,
            pieces=[WeldPiece(name=offcut.name, length=offcut.length) for offcut in combo],
            method="double" if len(combo) == 2 else "triple",
            demand_label=demand_label or None,
        )
        names = " + ".join(f"{offcut.name}({offcut.length}mm)" for offcut in combo)
        logger.info(f"  ✅ {assembly.label}: {names} = {actual}mm (target {target}mm)")
        return assembly

    def _find_match(self, available: List[Offcut], target: int, degree: int) -> Optional[Tuple[Tuple[Offcut, ...], str]]:
        tolerance = adaptive_tolerance(target)
        candidates = (
            combo for combo in combinations(available, degree)
            if abs(welded_length(combo, self.weld_loss) - target) <= tolerance
        )
        if self.match_policy == "best":
            candidates = sorted(candidates, key=lambda combo: abs(welded_length(combo, self.weld_loss) - target))

        for combo in candidates:
            demand_label = self.claim(target, combo)
            if demand_label is not None:
                return combo, demand_label
        return None
