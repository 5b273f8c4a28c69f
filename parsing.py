"""
Part list input: single entries, bulk text and the compact "7500x3, 750x2" form.

Each function returns validated PartRequests with unique positions, which is
what the engine expects from its callers.
"""
import logging
import re
from typing import Iterable, List, Optional

from models import PartRequest

logger = logging.getLogger(__name__)

COMPACT_ENTRY = re.compile(r"^(\d+)\s*[xX]\s*(\d+)$")
POSITION_NUMBER = re.compile(r"\d+")


class PartListError(ValueError):
    """One or more entries of a part list are invalid."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("\n".join(errors))


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


def make_part(position: str, length, quantity=1, existing: Iterable[PartRequest] = ()) -> PartRequest:
    """Validate a single entry against the parts already listed."""
    position = (position or "").strip()
    length = _to_int(str(length).strip())
    quantity = _to_int(str(quantity).strip()) if quantity not in (None, "") else 1

    if not position or length is None or length <= 0:
        raise PartListError(["A position and a positive length are required"])
    if quantity is None or quantity <= 0:
        raise PartListError([f"{position}: quantity must be a positive number"])
    if any(part.position == position for part in existing):
        raise PartListError([f"{position}: position already exists"])
    return PartRequest(position=position, length=length, quantity=quantity)


def parse_bulk(text: str, existing: Iterable[PartRequest] = ()) -> List[PartRequest]:
    """
    Parse one ``POSITION LENGTH [QUANTITY]`` entry per line.

    Blank lines are skipped. Every problem in the text is collected and
    reported in a single PartListError; nothing is returned unless all
    lines are valid.
    """
    known = {part.position for part in existing}
    parts: List[PartRequest] = []
    errors: List[str] = []

    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    if not lines:
        raise PartListError(["No part entries given"])

    for number, line in enumerate(lines, 1):
        fields = line.split()
        if len(fields) not in (2, 3):
            errors.append(f"Line {number}: invalid format \"{line}\"")
            continue

        position = fields[0]
        length = _to_int(fields[1])
        quantity = _to_int(fields[2]) if len(fields) == 3 else 1

        if length is None or length <= 0:
            errors.append(f"Line {number}: invalid length \"{fields[1]}\"")
            continue
        if quantity is None or quantity <= 0:
            errors.append(f"Line {number}: invalid quantity \"{fields[2]}\"")
            continue
        if position in known:
            errors.append(f"Line {number}: position \"{position}\" already exists")
            continue
        if any(part.position == position for part in parts):
            errors.append(f"Line {number}: position \"{position}\" is repeated")
            continue

        parts.append(PartRequest(position=position, length=length, quantity=quantity))

    if errors:
        logger.warning(f"❌ {len(errors)} invalid lines in bulk input")
        raise PartListError(errors)

    logger.info(f"📥 Parsed {len(parts)} parts from bulk input")
    return parts


def parse_compact(text: str) -> List[PartRequest]:
    """Parse ``"7500x3, 750x2"``; positions are generated as P1, P2, ..."""
    parts: List[PartRequest] = []
    errors: List[str] = []

    for entry in (text or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        match = COMPACT_ENTRY.match(entry)
        if not match:
            errors.append(f"Invalid entry \"{entry}\", expected LENGTHxQUANTITY")
            continue
        length, quantity = int(match.group(1)), int(match.group(2))
        if length <= 0 or quantity <= 0:
            errors.append(f"Invalid entry \"{entry}\", length and quantity must be positive")
            continue
        parts.append(PartRequest(position=f"P{len(parts) + 1}", length=length, quantity=quantity))

    if errors:
        raise PartListError(errors)
    return parts


def sort_parts(parts: Iterable[PartRequest]) -> List[PartRequest]:
    """Order by the first number in the position, then by the position text."""
    def key(part: PartRequest):
        match = POSITION_NUMBER.search(part.position)
        return (0, int(match.group()), part.position) if match else (1, 0, part.position)

    return sorted(parts, key=key)
