"""Line classification, temporal resolution and vendor session correlation."""

from .classifier import MalformedLineError, classify_line
from .correlator import SessionCorrelator
from .deriver import derive_transaction
from .state import ParserState
from .temporal import TemporalResolver

__all__ = [
    "MalformedLineError",
    "ParserState",
    "SessionCorrelator",
    "TemporalResolver",
    "classify_line",
    "derive_transaction",
]
