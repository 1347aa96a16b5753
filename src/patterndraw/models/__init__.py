"""ORM models package -- re-exports all models and the Base class."""

from patterndraw.models.base import Base
from patterndraw.models.drawing import Drawing
from patterndraw.models.user import User

__all__ = [
    "Base",
    "Drawing",
    "User",
]
