"""FX Module - Pivot-currency conversion over date-stamped rates."""

from .converter import CurrencyConverter
from .models import Conversion

__all__ = ["Conversion", "CurrencyConverter"]
