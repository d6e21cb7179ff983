from .types import JSONType, UUIDType
from .time import utcnow

__all__ = ["JSONType", "UUIDType", "utcnow"]
