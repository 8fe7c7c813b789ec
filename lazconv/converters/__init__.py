"""External converter runners."""

from lazconv.converters.potree import ConverterRun, PotreeConverter

__all__ = ["ConverterRun", "PotreeConverter"]
