"""
Foreground colour selection for node backgrounds.

Picks black or white text depending on the perceived brightness of a hex
background colour.
"""

BLACK = "#000000"
WHITE = "#FFFFFF"

# Perceived brightness threshold on the 0-255 scale
LUMINANCE_THRESHOLD = 128


def hex_to_rgb(hex_color: str) -> tuple:
    """Convert '#rrggbb' to an (r, g, b) tuple of ints."""
    h = hex_color.lstrip('#')
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def get_contrast_color(hex_color: str) -> str:
    """
    Return '#000000' for light backgrounds and '#FFFFFF' for dark ones.

    Anything that is not a '#rrggbb' string falls back to black.
    """
    if not hex_color or not isinstance(hex_color, str) or len(hex_color) < 7:
        return BLACK
    try:
        r, g, b = hex_to_rgb(hex_color[:7])
    except ValueError:
        return BLACK
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return BLACK if luminance > LUMINANCE_THRESHOLD else WHITE
