"""Sizing Module - Provider size systems to canonical UK sizing."""

from .models import SizeConversion
from .normalizer import SizeNormalizer, detect_gender, parse_size, size_key

__all__ = [
    "SizeConversion",
    "SizeNormalizer",
    "detect_gender",
    "parse_size",
    "size_key",
]
