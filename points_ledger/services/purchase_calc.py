"""
Purchase item calculator.

Pure functions only: no session, no clock. Every place that creates, edits
or releases an item goes through :func:`normalize_item_draft` so the stored
``points_final`` can never drift from its inputs.
"""

import math
from dataclasses import asdict, dataclass

from points_ledger.errors import ValidationError
from points_ledger.models.enums import BonusMode, ItemType, Program, TransferMode
from points_ledger.schemas.purchase_item import PurchaseItemDraft

TITLE_MAX_LENGTH = 200
DETAILS_MAX_LENGTH = 2000


@dataclass(frozen=True)
class NormalizedItem:
    type: ItemType
    title: str
    details: str | None
    program_from: Program | None
    program_to: Program | None
    points_base: int
    bonus_mode: BonusMode | None
    bonus_value: int | None
    points_final: int
    transfer_mode: TransferMode | None
    points_debited_from_origin: int
    amount_cents: int

    def as_columns(self) -> dict:
        return asdict(self)


def clamp_int(value, fallback: int = 0) -> int:
    """Truncate toward zero; anything non-numeric or non-finite becomes ``fallback``."""
    if value is None or isinstance(value, bool):
        return fallback
    try:
        v = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(v):
        return fallback
    return math.trunc(v)


def non_negative_int(value) -> int:
    return max(0, clamp_int(value, 0))


def _coerce_bonus_mode(mode) -> BonusMode | None:
    if mode is None or mode == "":
        return None
    if isinstance(mode, BonusMode):
        return mode
    return BonusMode(str(mode).strip().upper())


def compute_final_points(base, bonus_mode=None, bonus_value=None) -> int:
    """
    Final points credited by an item.

    ``PERCENT`` adds ``floor(base * value / 100)``; ``TOTAL`` adds ``value``
    points. A missing or non-positive bonus leaves ``base`` untouched.
    """
    points = non_negative_int(base)
    mode = _coerce_bonus_mode(bonus_mode)
    value = None if bonus_value is None else non_negative_int(bonus_value)

    if mode is None or value is None or value <= 0:
        return points

    if mode is BonusMode.PERCENT:
        return points + (points * value) // 100

    return points + value


def validate_item_draft(draft: PurchaseItemDraft) -> list[str]:
    errors: list[str] = []

    if not (draft.title or "").strip():
        errors.append("Item title is required.")

    points_base = non_negative_int(draft.points_base)
    amount_cents = non_negative_int(draft.amount_cents)

    if draft.type is ItemType.TRANSFER:
        if not draft.program_from:
            errors.append("TRANSFER requires program_from.")
        if not draft.program_to:
            errors.append("TRANSFER requires program_to.")
        if not draft.transfer_mode:
            errors.append("TRANSFER requires transfer_mode.")
        if points_base <= 0:
            errors.append("TRANSFER requires points_base > 0.")
        if draft.program_from and draft.program_from is draft.program_to:
            errors.append("TRANSFER requires program_from different from program_to.")
        if draft.transfer_mode is TransferMode.POINTS_PLUS_CASH:
            if non_negative_int(draft.points_debited_from_origin) <= 0:
                errors.append("POINTS_PLUS_CASH requires points_debited_from_origin > 0.")

    elif draft.type is ItemType.POINTS_BUY:
        if points_base <= 0:
            errors.append("POINTS_BUY requires points_base > 0.")

    elif draft.type is ItemType.CLUB:
        if amount_cents <= 0:
            errors.append("CLUB requires amount_cents > 0.")

    elif draft.type is ItemType.EXTRA_COST:
        if amount_cents <= 0:
            errors.append("EXTRA_COST requires amount_cents > 0.")

    # ADJUSTMENT: credit-only for now, points_base is clamped like every other type

    return errors


def normalize_item_draft(draft: PurchaseItemDraft) -> NormalizedItem:
    errors = validate_item_draft(draft)
    if errors:
        raise ValidationError("Invalid purchase item.", errors=errors)

    details = draft.details
    if details is not None:
        details = str(details)[:DETAILS_MAX_LENGTH] or None

    return NormalizedItem(
        type=draft.type,
        title=str(draft.title or "").strip()[:TITLE_MAX_LENGTH],
        details=details,
        program_from=draft.program_from,
        program_to=draft.program_to,
        points_base=non_negative_int(draft.points_base),
        bonus_mode=_coerce_bonus_mode(draft.bonus_mode),
        bonus_value=None if draft.bonus_value is None else non_negative_int(draft.bonus_value),
        points_final=compute_final_points(draft.points_base, draft.bonus_mode, draft.bonus_value),
        transfer_mode=draft.transfer_mode,
        points_debited_from_origin=non_negative_int(draft.points_debited_from_origin),
        amount_cents=non_negative_int(draft.amount_cents),
    )


def draft_from_item(item) -> PurchaseItemDraft:
    """Rebuild the draft a stored item was normalized from."""
    return PurchaseItemDraft(
        type=item.type,
        title=item.title,
        details=item.details,
        program_from=item.program_from,
        program_to=item.program_to,
        points_base=item.points_base,
        bonus_mode=item.bonus_mode,
        bonus_value=item.bonus_value,
        transfer_mode=item.transfer_mode,
        points_debited_from_origin=item.points_debited_from_origin,
        amount_cents=item.amount_cents,
    )
