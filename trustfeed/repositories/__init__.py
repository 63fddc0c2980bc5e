"""Repository implementations package."""
from .memory import (
    InMemoryContentRepository,
    InMemoryDatabase,
    InMemoryInteractionRepository,
    InMemorySocialGraphRepository,
    InMemoryTasteAlignmentCache,
    InMemoryTasteDataRepository,
    ReshareRow,
)

__all__ = [
    "InMemoryContentRepository",
    "InMemoryDatabase",
    "InMemoryInteractionRepository",
    "InMemorySocialGraphRepository",
    "InMemoryTasteAlignmentCache",
    "InMemoryTasteDataRepository",
    "ReshareRow",
]
