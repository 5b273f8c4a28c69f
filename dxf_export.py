"""
DXF drawing of a cutting plan.

The drawing is laid out top to bottom in real millimetres: one row per stock
bar, then the welded assemblies, the remaining offcuts and a summary block.
"""
import io
import logging

import ezdxf
from ezdxf import units
from ezdxf.enums import TextEntityAlignment

from models import OptimizationResult

logger = logging.getLogger(__name__)

LAYERS = {
    "BAR": 7,
    "CUT": 2,
    "SAW": 8,
    "OFFCUT": 1,
    "WELD_PIECE": 3,
    "WELD": 5,
    "TEXT": 7,
}

BAR_HEIGHT = 150
ROW_SPACING = 400
TEXT_HEIGHT = 60
WELD_GAP = 80
OFFCUTS_PER_ROW = 5


def _rectangle(msp, x, y, width, height, layer):
    points = [(x, y), (x + width, y), (x + width, y + height), (x, y + height)]
    msp.add_lwpolyline(points, close=True, dxfattribs={"layer": layer})
    return points


def _text(msp, text, x, y, height=TEXT_HEIGHT, align=TextEntityAlignment.MIDDLE_CENTER, layer="TEXT"):
    msp.add_text(text, height=height, dxfattribs={"layer": layer}).set_placement((x, y), align=align)


def _draw_bar(msp, bar, y, stock_length):
    _rectangle(msp, 0, y, stock_length, BAR_HEIGHT, "BAR")
    _text(msp, f"BAR #{bar.id}", 0, y + BAR_HEIGHT + TEXT_HEIGHT, align=TextEntityAlignment.LEFT)

    x = 0
    for index, cut in enumerate(bar.cuts):
        _rectangle(msp, x, y, cut.length, BAR_HEIGHT, "CUT")
        _text(msp, cut.label, x + cut.length / 2, y + BAR_HEIGHT * 0.7, height=TEXT_HEIGHT * 0.6)
        _text(msp, f"{cut.length}mm", x + cut.length / 2, y + BAR_HEIGHT * 0.3, height=TEXT_HEIGHT * 0.5)
        x += cut.length
        if index < len(bar.cuts) - 1:
            msp.add_line((x, y), (x, y + BAR_HEIGHT), dxfattribs={"layer": "SAW"})

    if bar.remaining_length > 0:
        points = _rectangle(msp, x, y, bar.remaining_length, BAR_HEIGHT, "OFFCUT")
        hatch = msp.add_hatch(color=LAYERS["OFFCUT"], dxfattribs={"layer": "OFFCUT"})
        hatch.set_pattern_fill("ANSI31", scale=20)
        hatch.paths.add_polyline_path(points, is_closed=True)
        label = bar.welded_offcut or "OFFCUT"
        _text(msp, f"{label} {bar.remaining_length}mm", x + bar.remaining_length / 2, y + BAR_HEIGHT / 2,
              height=TEXT_HEIGHT * 0.5)

    _text(msp, f"Total: {stock_length}mm", stock_length + 200, y + BAR_HEIGHT / 2, align=TextEntityAlignment.MIDDLE_LEFT)


def _draw_weld(msp, weld, y):
    _text(msp, f"{weld.label}: {weld.target_length}mm", 0, y + BAR_HEIGHT + TEXT_HEIGHT,
          align=TextEntityAlignment.LEFT)
    x = 0
    for index, piece in enumerate(weld.pieces):
        _rectangle(msp, x, y, piece.length, BAR_HEIGHT, "WELD_PIECE")
        _text(msp, f"{piece.name} {piece.length}mm", x + piece.length / 2, y + BAR_HEIGHT / 2,
              height=TEXT_HEIGHT * 0.5)
        x += piece.length
        if index < len(weld.pieces) - 1:
            mid = y + BAR_HEIGHT / 2
            size = WELD_GAP / 2
            msp.add_lwpolyline(
                [(x, mid - size), (x + WELD_GAP, mid - size), (x + size, mid + size)],
                close=True,
                dxfattribs={"layer": "WELD"},
            )
            x += WELD_GAP
    _text(msp, f"Actual {weld.actual_length}mm, deviation {weld.tolerance_delta:+d}mm", x + 200, y + BAR_HEIGHT / 2,
          align=TextEntityAlignment.MIDDLE_LEFT)


def build_document(result: OptimizationResult, stock_length: int):
    doc = ezdxf.new("R2010")
    doc.units = units.MM
    for name, color in LAYERS.items():
        doc.layers.add(name=name, color=color)
    msp = doc.modelspace()

    # rows go downwards from y=0
    y = 0
    for bar in result.stock_bars:
        y -= ROW_SPACING
        _draw_bar(msp, bar, y, stock_length)

    if result.weld_assemblies:
        y -= ROW_SPACING * 2
        _text(msp, "WELDED ASSEMBLIES", 0, y, height=TEXT_HEIGHT * 1.2, align=TextEntityAlignment.LEFT)
        for weld in result.weld_assemblies:
            y -= ROW_SPACING
            _draw_weld(msp, weld, y)

    if result.offcuts:
        y -= ROW_SPACING * 2
        _text(msp, "OFFCUTS", 0, y, height=TEXT_HEIGHT * 1.2, align=TextEntityAlignment.LEFT)
        for index, offcut in enumerate(result.offcuts):
            if index % OFFCUTS_PER_ROW == 0:
                y -= ROW_SPACING
                x = 0
            _rectangle(msp, x, y, offcut.length, BAR_HEIGHT, "OFFCUT")
            _text(msp, f"{offcut.name}: {offcut.length}mm", x + offcut.length / 2, y + BAR_HEIGHT / 2,
                  height=TEXT_HEIGHT * 0.5)
            x += offcut.length + 300

    y -= ROW_SPACING * 2
    _text(msp, "SUMMARY", 0, y, height=TEXT_HEIGHT * 1.2, align=TextEntityAlignment.LEFT)
    summary = [
        f"Stock bars: {result.total_stock_bars}",
        f"Material utilization: {result.material_utilization_percent}%",
        f"Welded assemblies: {len(result.weld_assemblies)}",
        f"Offcuts: {len(result.offcuts)}",
    ]
    for line in summary:
        y -= TEXT_HEIGHT * 2
        _text(msp, line, 0, y, height=TEXT_HEIGHT * 0.8, align=TextEntityAlignment.LEFT)

    return doc


def export_dxf(result: OptimizationResult, stock_length: int) -> str:
    """Render ``result`` and return the DXF file contents as text."""
    doc = build_document(result, stock_length)
    stream = io.StringIO()
    doc.write(stream)
    logger.info(f"📄 DXF export: {len(result.stock_bars)} bars, {len(result.weld_assemblies)} welds")
    return stream.getvalue()
