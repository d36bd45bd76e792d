import enum


class Program(str, enum.Enum):
    LATAM = "LATAM"
    SMILES = "SMILES"
    LIVELO = "LIVELO"
    ESFERA = "ESFERA"


class PurchaseStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    CANCELED = "CANCELED"


class ItemType(str, enum.Enum):
    POINTS_BUY = "POINTS_BUY"
    TRANSFER = "TRANSFER"
    ADJUSTMENT = "ADJUSTMENT"
    CLUB = "CLUB"
    EXTRA_COST = "EXTRA_COST"


class ItemStatus(str, enum.Enum):
    PENDING = "PENDING"
    RELEASED = "RELEASED"
    CANCELED = "CANCELED"


class BonusMode(str, enum.Enum):
    PERCENT = "PERCENT"
    TOTAL = "TOTAL"


class TransferMode(str, enum.Enum):
    POINTS_ONLY = "POINTS_ONLY"
    POINTS_PLUS_CASH = "POINTS_PLUS_CASH"


class EmissionSource(str, enum.Enum):
    MANUAL = "MANUAL"
    SALE = "SALE"
    IMPORT = "IMPORT"


class ClubStatus(str, enum.Enum):
    """Club lifecycle states, declared in increasing order of severity."""

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CANCELED = "CANCELED"

    @property
    def severity(self) -> int:
        return list(ClubStatus).index(self)

    @property
    def is_terminal(self) -> bool:
        return self is ClubStatus.CANCELED

    def downgrade_to(self, candidate: "ClubStatus") -> "ClubStatus":
        # never moves back to a less severe state
        return candidate if candidate.severity > self.severity else self
