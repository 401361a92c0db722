import enum


@enum.unique
class DiscountKind(enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SHIPPING = "free_shipping"
    BUY_X_GET_Y = "buy_x_get_y"
    OTHER = "other"

    @classmethod
    def from_value(cls, value):
        """Map a raw engine ``type`` string to a kind.

        Types introduced by the engine after this release map to
        :attr:`OTHER` instead of raising.
        """
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@enum.unique
class BadgeStatus(enum.Enum):
    SUCCESS = "success"
    NEUTRAL = "neutral"
    INFO = "info"
    CRITICAL = "critical"


@enum.unique
class Tone(enum.Enum):
    DEFAULT = "default"
    SUCCESS = "success"
    SUBDUED = "subdued"
