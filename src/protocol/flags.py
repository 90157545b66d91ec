"""Engine flag type used for every boolean-like reserve capability."""

from enum import Enum


class EngineFlag(Enum):
    """Two-valued flag accepted by the configuration engine.

    Not an ``IntEnum``: ``True`` and ``1`` must never compare equal to
    ``ENABLED``.
    """

    DISABLED = 0
    ENABLED = 1

    @property
    def enabled(self) -> bool:
        return self is EngineFlag.ENABLED

    @classmethod
    def parse(cls, raw: str) -> "EngineFlag":
        """Parse ``"ENABLED"``, ``"DISABLED"`` or ``"EngineFlags.ENABLED"``."""
        name = raw.strip().rsplit(".", 1)[-1].upper()
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown engine flag: {raw!r}") from None
