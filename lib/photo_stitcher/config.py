# Default settings for the stitching pipeline

# Layout defaults
DEFAULT_AXIS = "stacked"
DEFAULT_ALIGN = "center"
DEFAULT_GAP_PX = 0
DEFAULT_GAP_COLOR = "#ffffff"
DEFAULT_OUTER_PADDING_PX = 0

# Maximum output size applied when a settings record omits the keys
DEFAULT_MAX_OUTPUT_WIDTH = 4096
DEFAULT_MAX_OUTPUT_HEIGHT = 8192

# Style defaults
DEFAULT_BACKGROUND_COLOR = "#ffffff"
DEFAULT_BORDER_COLOR = "#000000"

# Output defaults
DEFAULT_OUTPUT_FORMAT = "png"
DEFAULT_OUTPUT_QUALITY = 0.92
OUTPUT_BASE_FILENAME = "stitched"
OUTPUT_MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}
OUTPUT_FILE_EXTENSIONS = {
    "png": ".png",
    "jpeg": ".jpg",
    "webp": ".webp",
}

# Watermark defaults
DEFAULT_WATERMARK_OPACITY = 0.2
DEFAULT_WATERMARK_ROTATION_DEG = -30.0
DEFAULT_WATERMARK_POSITION = "br"
DEFAULT_WATERMARK_IMAGE_SCALE = 0.2
WATERMARK_MARGIN_PX = 16
WATERMARK_FONT_HEIGHT_PX = 16
WATERMARK_TEXT_COLOR = "#000000"
WATERMARK_TEXT_TILE_STRIDE = 3.0
WATERMARK_IMAGE_TILE_STRIDE = 2.5
