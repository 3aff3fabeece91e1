# Domain Package
from .card_hash import CardHash, Hasher
from .errors import DecodeError, HashcardsError, ParserError, SessionError, StoreError
from .fsrs import Grade
from .models import (
    NEW,
    BasicContent,
    Card,
    CardContent,
    ClozeContent,
    NewPerformance,
    Performance,
    ReviewedPerformance,
)
from .performance import update_performance
from .ports import PerformanceStore

__all__ = [
    "CardHash",
    "Hasher",
    "HashcardsError",
    "ParserError",
    "DecodeError",
    "SessionError",
    "StoreError",
    "Grade",
    "NEW",
    "BasicContent",
    "ClozeContent",
    "CardContent",
    "Card",
    "NewPerformance",
    "ReviewedPerformance",
    "Performance",
    "update_performance",
    "PerformanceStore",
]
