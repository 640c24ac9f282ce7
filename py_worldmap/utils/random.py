"""
Random number generation utilities.

Every generation run owns exactly one PRNG instance created here and passes
it explicitly to each stage. There is no module-level generator.
"""

from typing import Optional

from ..config.config import settings
from ..core.mulberry_prng import Mulberry32, hash_string


def normalize_seed_text(seed_text: Optional[str], fallback: Optional[str] = None) -> str:
    """Strip seed text and fall back to ``settings.default_seed`` when it is blank."""
    text = (seed_text or "").strip()
    return text or fallback or settings.default_seed


def create_prng(seed_text: Optional[str], fallback: Optional[str] = None) -> Mulberry32:
    """
    Create the PRNG for one generation run.

    Args:
        seed_text: Seed string; blank text uses the fallback seed
        fallback: Seed used when seed_text is blank; defaults to the configured seed

    Returns:
        Fresh Mulberry32 instance
    """
    return Mulberry32(hash_string(normalize_seed_text(seed_text, fallback)))
