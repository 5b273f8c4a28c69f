"""
Exact stock bar count for comparison with the greedy plan.

Solves the bin packing integer program with CBC. Only the bar count is
reported; the cutting plan itself always comes from the greedy engine.
"""
import logging
import time
from typing import Optional, Sequence

import pulp

logger = logging.getLogger(__name__)

DEFAULT_TIME_LIMIT = 10  # seconds


def minimum_stock_bars(
    lengths: Sequence[int],
    stock_length: int,
    upper_bound: Optional[int] = None,
    time_limit: int = DEFAULT_TIME_LIMIT,
) -> Optional[int]:
    """
    Smallest number of stock bars that can hold every piece.

    Every piece is cut from stock, with no welding, so the number compares
    against the greedy packing before any weld replaced a piece. The bound
    must be feasible for all pieces; a lower one makes the model infeasible.

    Args:
        lengths: Piece lengths in mm, one entry per piece
        stock_length: Length of each stock bar in mm
        upper_bound: Bar count known to hold every piece (e.g. the greedy packing); limits model size
        time_limit: CBC time limit in seconds

    Returns:
        The optimal bar count, or None when CBC could not prove optimality in time
    """
    cuts = list(lengths)
    n = len(cuts)
    if n == 0:
        return 0
    for length in cuts:
        if length > stock_length:
            raise ValueError(f"Piece length {length}mm exceeds stock length {stock_length}mm")

    bars = min(n, upper_bound) if upper_bound else n
    start_time = time.time()
    logger.info(f"🔨 Building exact model: {n} pieces, at most {bars} bars")

    model = pulp.LpProblem("StockBarCount", pulp.LpMinimize)

    # x[i][j] = piece i assigned to bar j
    x = pulp.LpVariable.dicts("x", (range(n), range(bars)), cat="Binary")
    # y[j] = bar j is used
    y = pulp.LpVariable.dicts("y", range(bars), cat="Binary")

    # objective: minimize number of bars
    model += pulp.lpSum(y[j] for j in range(bars))

    # each piece must be assigned once
    for i in range(n):
        model += pulp.lpSum(x[i][j] for j in range(bars)) == 1

    # bar capacity constraints
    for j in range(bars):
        model += pulp.lpSum(cuts[i] * x[i][j] for i in range(n)) <= stock_length * y[j]

    # use bars in order, cuts down symmetric solutions
    for j in range(bars - 1):
        model += y[j] >= y[j + 1]

    model.solve(pulp.PULP_CBC_CMD(msg=False, timeLimit=time_limit))

    if model.status != pulp.LpStatusOptimal:
        logger.warning(f"⚠️ Exact model ended with status {pulp.LpStatus[model.status]}")
        return None

    count = sum(1 for j in range(bars) if y[j].value() is not None and y[j].value() > 0.5)
    logger.info(f"✅ Exact bar count {count} ({time.time() - start_time:.2f} seconds)")
    return count
