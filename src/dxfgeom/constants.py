from __future__ import annotations

EPSILON = 0.0001

TEXT_HEIGHT = 16.0
MAX_TEXT_FONT_SIZE = 256
MIN_TEXT_FONT_SIZE = 16
TEXT_CANVAS_SCALE = 10
TEXT_ASCENT_RATIO = 0.8
TEXT_DESCENT_RATIO = 0.05
TEXT_CHAR_WIDTH_RATIO = 0.6
MTEXT_LINE_SPACING = 1.4

DIM_TEXT_HEIGHT = 5.0
DIM_TEXT_GAP = DIM_TEXT_HEIGHT * 1.5
DIM_TEXT_DECIMAL_PLACES = 4
STACKED_TEXT_RATIO = 0.6
STACKED_TEXT_GAP = 2.0
STACKED_TEXT_V_GAP = 4.0

ARROW_SIZE = 3.0
ARROW_BASE_WIDTH_DIVISOR = 4
EXTENSION_LINE_OVERSHOOT = 2.0
EXTENSION_LINE_DASH_SIZE = 2.0
EXTENSION_LINE_GAP_SIZE = 1.0

CIRCLE_SEGMENTS = 128
MIN_ARC_SEGMENTS = 8
NURBS_SEGMENTS_MULTIPLIER = 4
MIN_NURBS_SEGMENTS = 100
CATMULL_ROM_SEGMENTS_MULTIPLIER = 2
MIN_CATMULL_ROM_SEGMENTS = 50
HATCH_SPLINE_SEGMENTS_MULTIPLIER = 4
MIN_HATCH_SPLINE_SEGMENTS = 20

POINT_MARKER_SIZE = 3.0

MAX_HATCH_SEGMENTS = 50000
MAX_HATCH_LINES_PER_PATTERN = 1000

MAX_INSERT_DEPTH = 10

DEFAULT_ENTITY_COLOR = "#000000"
DEFAULT_LAYER_NAME = "0"

LINETYPE_DOT_SIZE = 0.5
MAX_INSERT_ARRAY_INSTANCES = 10000
