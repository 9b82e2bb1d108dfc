from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Result:
    """Outcome of a backend operation: services return these instead of raising"""

    success: bool
    error: Optional[str] = None
    value: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, value=None, **extra) -> 'Result':
        return cls(success=True, value=value, extra=extra)

    @classmethod
    def fail(cls, error: str, **extra) -> 'Result':
        return cls(success=False, error=error, extra=extra)

    def __bool__(self):
        return self.success
