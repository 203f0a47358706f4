"""Size normalization between provider sizing systems and canonical UK.

Providers disagree on which sizing system they publish (StockX lists US,
Alias lists US or EU depending on region, users store UK), so size-keyed
price lookups only line up once everything is expressed in UK sizing.

Conversion rules are linear offsets keyed by (system, gender):
    US men    -> UK: us - 1
    US women  -> UK: us - 2
    EU        -> UK: (eu - 33.5) / 1.5
    JP        -> UK: (jp - 22) / 1.5
"""

from __future__ import annotations

import logging
import re

from ...common.models import Gender, SizeSystem
from .models import SizeConversion

logger = logging.getLogger(__name__)

_SIZE_PREFIX_RE = re.compile(r"^\s*(UK|US|EU|JP)\s*(.*?)\s*$", re.IGNORECASE)

# Title keywords → gender
GENDER_KEYWORDS = {
    "women's": Gender.WOMEN,
    "womens": Gender.WOMEN,
    "wmns": Gender.WOMEN,
    "(w)": Gender.WOMEN,
    "men's": Gender.MEN,
    "mens": Gender.MEN,
}

US_OFFSETS = {
    Gender.MEN: 1.0,
    Gender.WOMEN: 2.0,
}

EU_OFFSET = 33.5
JP_OFFSET = 22.0
HALF_SIZE_STEP = 1.5


def parse_size(text: str | None) -> tuple[str | None, str | None]:
    """Split a size label into (system, value).

    "US 10.5" -> ("US", "10.5"), "uk9" -> ("UK", "9"), "9" -> (None, "9").
    """
    if text is None:
        return None, None
    match = _SIZE_PREFIX_RE.match(str(text))
    if match:
        return match.group(1).upper(), match.group(2)
    return None, str(text).strip()


def detect_gender(*texts: str | None) -> Gender | None:
    """Infer the sizing gender from brand/model/title text, if stated."""
    haystack = " ".join(t for t in texts if t).lower()
    for keyword, gender in GENDER_KEYWORDS.items():
        if keyword in haystack:
            return gender
    return None


def size_key(size: float | str | None) -> str:
    """Canonical lookup key for a UK size.

    Numeric sizes are snapped to the nearest half size and printed without
    trailing zeros (9.0 -> "9", 7.33 -> "7.5"); anything else is upper-cased.
    """
    if size is None:
        return ""
    try:
        numeric = float(size)
    except (TypeError, ValueError):
        return str(size).strip().upper()
    return f"{round(numeric * 2) / 2:g}"


def _coerce_system(system: SizeSystem | str | None) -> SizeSystem | None:
    if system is None or isinstance(system, SizeSystem):
        return system
    try:
        return SizeSystem(str(system).strip().upper())
    except ValueError:
        return None


def _coerce_gender(gender: Gender | str | None) -> Gender | None:
    if gender is None or isinstance(gender, Gender):
        return gender
    normalized = str(gender).strip().lower()
    if normalized in ("m", "men", "male", "mens"):
        return Gender.MEN
    if normalized in ("w", "women", "female", "womens"):
        return Gender.WOMEN
    return None


class SizeNormalizer:
    """Convert sizes to and from canonical UK sizing.

    Usage:
        normalizer = SizeNormalizer()
        uk = normalizer.to_canonical("10", "US", "men")       # value=9.0
        us = normalizer.from_canonical(9.0, "US", "men")      # 10.0
    """

    def to_canonical(
        self,
        value: float | str,
        source_system: SizeSystem | str | None,
        gender: Gender | str | None = None,
        brand: str | None = None,
        model: str | None = None,
    ) -> SizeConversion:
        """Convert a provider size into canonical UK sizing.

        Args:
            value: Size value, numeric or text. A prefixed label such as
                "US10" overrides a missing ``source_system``.
            source_system: Sizing system of ``value``.
            gender: Sizing gender. When missing it is inferred from
                ``brand``/``model`` text, else men's is assumed.
            brand: Brand name, used for gender inference.
            model: Model/title text, used for gender inference.

        Returns:
            SizeConversion; unsupported systems and non-numeric values pass
            through unchanged with ``confident=False``.
        """
        raw_system = source_system
        if isinstance(value, str):
            prefix, rest = parse_size(value)
            if prefix:
                value = rest or ""
                if raw_system is None:
                    raw_system = prefix

        resolved_gender = _coerce_gender(gender) or detect_gender(brand, model)
        gender_assumed = resolved_gender is None
        if resolved_gender is None:
            resolved_gender = Gender.MEN

        system = _coerce_system(raw_system) if raw_system is not None else SizeSystem.UK
        if system is None:
            logger.debug("Unsupported size system %r, passing %r through", raw_system, value)
            return SizeConversion(value=value, source_system=None, gender=resolved_gender, confident=False)

        try:
            numeric = float(value)
        except (TypeError, ValueError):
            return SizeConversion(value=value, source_system=system, gender=resolved_gender, confident=False)

        if system is SizeSystem.UK:
            uk = numeric
        elif system is SizeSystem.US:
            uk = numeric - US_OFFSETS[resolved_gender]
        elif system is SizeSystem.EU:
            uk = (numeric - EU_OFFSET) / HALF_SIZE_STEP
        else:
            uk = (numeric - JP_OFFSET) / HALF_SIZE_STEP

        # Gender only changes the result for US sizing
        confident = not (gender_assumed and system is SizeSystem.US)
        return SizeConversion(value=uk, source_system=system, gender=resolved_gender, confident=confident)

    def from_canonical(
        self,
        canonical_size: float | str,
        target_system: SizeSystem | str,
        gender: Gender | str | None = None,
    ) -> float | str:
        """Convert a canonical UK size into ``target_system``.

        Non-numeric sizes and unsupported systems pass through unchanged.
        """
        system = _coerce_system(target_system)
        try:
            uk = float(canonical_size)
        except (TypeError, ValueError):
            return canonical_size
        if system is None:
            return canonical_size

        resolved_gender = _coerce_gender(gender) or Gender.MEN
        if system is SizeSystem.UK:
            result = uk
        elif system is SizeSystem.US:
            result = uk + US_OFFSETS[resolved_gender]
        elif system is SizeSystem.EU:
            result = uk * HALF_SIZE_STEP + EU_OFFSET
        else:
            result = uk * HALF_SIZE_STEP + JP_OFFSET
        return round(result, 4)
