"""
Pre-compression size estimation.

The numbers produced here are a rough guide for the user before anything is
compressed. They are never used as the real compressed size.
"""

from .utils import round_half_up


PRESETS = ('high', 'medium', 'low', 'custom')

# Share of the original size kept at each named preset
PRESET_FACTORS = {
    'high': 0.70,    # quality 90
    'medium': 0.45,  # quality 70
    'low': 0.25,     # quality 50
}

PRESET_QUALITY = {
    'high': 90,
    'medium': 70,
    'low': 50,
}

MIN_QUALITY = 10
MAX_QUALITY = 100


def preset_quality(preset: str) -> int:
    """Numeric quality a named preset stands for."""
    try:
        return PRESET_QUALITY[preset]
    except KeyError:
        raise ValueError(f"Preset '{preset}' has no fixed quality") from None


def custom_factor(quality: int) -> float:
    """Linear factor for a custom quality: 0.16 at 10 up to 0.70 at 100."""
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValueError(f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")
    return 0.1 + (quality / 100) * 0.6


def estimate_size(source_bytes: int, preset: str, quality: int = 70) -> int:
    """
    Predict the compressed size of a file.

    Args:
        source_bytes: Original file size in bytes
        preset: 'high', 'medium', 'low' or 'custom'
        quality: Quality value (10-100), only used by the custom preset

    Returns:
        Predicted size in bytes
    """
    if source_bytes < 0:
        raise ValueError(f"File size cannot be negative, got {source_bytes}")

    if preset == 'custom':
        factor = custom_factor(quality)
    elif preset in PRESET_FACTORS:
        factor = PRESET_FACTORS[preset]
    else:
        raise ValueError(f"Unknown preset '{preset}', expected one of {', '.join(PRESETS)}")

    return round_half_up(source_bytes * factor)
