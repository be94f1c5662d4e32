TEMPLATE_CONFIG_FILE = "config.json"
STATIC_IMAGE_FILE = "image.png"
ANIMATED_IMAGE_FILE = "animated.gif"

DEFAULT_SOURCE_URL = "https://github.com/TheRawMeatball/memeinator-memesrc.git"
DEFAULT_SOURCE_ALIAS = "default"
DEFAULT_WATERMARK = "Made with meme-cli"
DEFAULT_WATERMARK_SIZE_FRACTION = 30.0
DEFAULT_MAX_FONT_SIZE = 600.0
DEFAULT_TEXT_COLOR = (0.0, 0.0, 0.0, 1.0)

MIN_FONT_SIZE = 5.0
# Fit-Search stops once the bounds are this close (in px).
FIT_CONVERGENCE_PX = 0.25

TOP_TEXT_HEIGHT_RATIO = 0.25

# CLI input prefixes for non-text content items
NESTED_MEME_PREFIX = "/meme "
NESTED_MEME_SEPARATOR = "$$"
IMAGE_PREFIX = "/image "

STATIC_OUTPUT_FORMATS = {".png": "PNG", ".jpg": "JPEG", ".jpeg": "JPEG", ".bmp": "BMP", ".webp": "WEBP", ".gif": "GIF"}
ANIMATED_OUTPUT_FORMATS = {"GIF", "PNG", "WEBP"}

APP_NAME = "memecli"
