"""
Constants and configuration values for POD Studio.

This module centralizes all constant values, magic numbers, and
default settings used throughout the raster core.
"""

# Raster modes
RASTER_MODE = "RGBA"
MASK_MODE = "L"
MASK_KEEP = 255
MASK_EMPTY = 0

# Segmentation
DEFAULT_REMOVE_TOLERANCE = 30.0
DEFAULT_EDIT_TOLERANCE = 40.0
EDGE_MARGIN = 5
EDGE_TOLERANCE_FACTOR = 1.5
BACKGROUND_CORNER_DISTANCE = 15.0
BACKGROUND_MIN_CORNER_MATCHES = 3

# Filter parameter domains (min, max)
FILTER_RANGES = {
    "brightness": (-100, 100),
    "contrast": (-100, 100),
    "saturation": (-100, 100),
    "noise": (0, 100),
    "vintage": (0, 100),
    "posterize": (0, 32),
    "halftone": (0, 10),
}

# Filter constants
LUMA_WEIGHTS = (0.2989, 0.5870, 0.1140)
HALFTONE_LUMA_WEIGHTS = (0.299, 0.587, 0.114)
SEPIA_MATRIX = (
    (0.393, 0.769, 0.189),
    (0.349, 0.686, 0.168),
    (0.272, 0.534, 0.131),
)
POSTERIZE_LEVEL_BASE = 34
POSTERIZE_MIN_LEVELS = 2
HALFTONE_CELL_PADDING = 2
HALFTONE_DARKEN = 0.8

# Text layers
CURVE_RADIUS_NUMERATOR = 10000.0
CURVE_CHAR_WIDTH_FACTOR = 0.5
LETTER_SPACING_DIVISOR = 500.0
DEFAULT_FONT_FAMILY = "DejaVuSans.ttf"
DEFAULT_TEXT_SIZE = 100
DEFAULT_TEXT_COLOR = "#ffffff"
DEFAULT_STROKE_COLOR = "#000000"
DEFAULT_SHADOW_COLOR = "#000000"
DEFAULT_SHADOW_OFFSET = 5.0
DEFAULT_IMAGE_LAYER_SCALE = 30.0

# Pattern tiler
PATTERN_DIAGONAL_FACTOR = 1.5
PATTERN_EXTRA_TILES = 2
DEFAULT_PATTERN_DENSITY = 20.0

# Print pre-flight
PREFLIGHT_SAMPLE_STEP = 2
PREFLIGHT_OPAQUE_ALPHA = 50
THIN_LINE_RATIO = 0.001
LOW_CONTRAST_DISTANCE = 40.0
LOW_CONTRAST_RATIO = 0.05
SPOT_COLOR_SAMPLE_STEP = 10
SPOT_COLOR_MIN_ALPHA = 128
SPOT_COLOR_QUANTUM = 32
DEFAULT_SPOT_COLORS = 8
AUTO_CONTRAST_DISTANCE = 60.0
AUTO_CONTRAST_DELTA = 50
AUTO_CONTRAST_MIN_ALPHA = 10
DARK_FABRIC_LUMINANCE = 128

# Editor defaults
DEFAULT_FABRIC_COLOR = "#18181b"
DEFAULT_BRUSH_SIZE = 20
DEFAULT_PRINT_PRESET = "standard"
HISTORY_CAP = 20

# Preview guides
GUIDE_SAFE_COLOR = (0, 255, 255, 255)
GUIDE_SAFE_FILL = (0, 255, 255, 26)
GUIDE_SAFE_WIDTH = 2
GUIDE_DASH = 10
GUIDE_TRIM_COLOR = (255, 0, 0, 255)
GUIDE_TRIM_WIDTH = 4

# Generative fill
FILL_INSTRUCTION_TEMPLATE = (
    "Fill the transparent/missing area with: {text}. "
    "Blend seamlessly. Keep the rest of the image exactly as is."
)

# Export
DEFAULT_OUTPUT_FORMAT = "PNG"

# Layer field names
FIELD_LAYER_ID = "id"
FIELD_LAYER_TYPE = "type"
LAYER_TYPE_TEXT = "text"
LAYER_TYPE_IMAGE = "image"

# Config store keys
STORE_STYLES = "styles"
STORE_MOCKUPS = "mockups"
STORE_TEXTURES = "textures"
STORE_API_KEYS = "api_keys"
MOCKUP_CATEGORIES = ("apparel", "home", "accessories")
CREDENTIAL_KEYS = ("gemini", "stability", "openai", "huggingface")
