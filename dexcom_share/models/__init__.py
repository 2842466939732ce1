# Decoded Share models
from dexcom_share.models.glucose import DEXCOM_TREND_MAP, GlucoseReading, TrendDirection

__all__ = [
    "DEXCOM_TREND_MAP",
    "GlucoseReading",
    "TrendDirection",
]
