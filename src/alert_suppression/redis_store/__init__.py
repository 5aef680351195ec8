"""Redis persistence for the alert suppression engine."""

from .codec import SuppressionCodec
from .keys import SuppressionKeyBuilder
from .store import RedisSuppressionStore

__all__ = ["RedisSuppressionStore", "SuppressionCodec", "SuppressionKeyBuilder"]
