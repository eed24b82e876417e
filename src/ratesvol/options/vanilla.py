"""
European vanilla option descriptor.

A vanilla option is the minimal description a volatility formula needs:
strike, time to expiry and the put/call flag. Pricing itself is out of scope;
the descriptor only carries inputs into the smile formulas.
"""

from dataclasses import dataclass
from enum import Enum
import math


class PutCall(Enum):
    """Option payoff direction."""
    CALL = "Call"
    PUT = "Put"

    @classmethod
    def from_string(cls, s: str) -> "PutCall":
        """Parse put/call flag from string representation."""
        key = s.strip().upper()
        if key in ("C", "CALL"):
            return cls.CALL
        if key in ("P", "PUT"):
            return cls.PUT
        raise ValueError(f"Unknown put/call flag: {s}")


@dataclass(frozen=True)
class EuropeanVanillaOption:
    """
    European vanilla option on a forward rate.

    Attributes:
        strike: Option strike (may be negative before a shift is applied)
        time_to_expiry: Time to expiry in years (non-negative)
        put_call: Call or put
    """
    strike: float
    time_to_expiry: float
    put_call: PutCall = PutCall.CALL

    def __post_init__(self):
        if not math.isfinite(self.strike):
            raise ValueError(f"strike must be finite, got {self.strike}")
        if not math.isfinite(self.time_to_expiry) or self.time_to_expiry < 0:
            raise ValueError(
                f"time_to_expiry must be non-negative, got {self.time_to_expiry}"
            )
        if not isinstance(self.put_call, PutCall):
            raise ValueError(f"put_call must be a PutCall, got {self.put_call!r}")

    @classmethod
    def of(
        cls,
        strike: float,
        time_to_expiry: float,
        put_call: PutCall = PutCall.CALL
    ) -> "EuropeanVanillaOption":
        """Create an option, coercing numeric inputs to float."""
        return cls(float(strike), float(time_to_expiry), put_call)

    @property
    def is_call(self) -> bool:
        return self.put_call is PutCall.CALL


__all__ = ["PutCall", "EuropeanVanillaOption"]
