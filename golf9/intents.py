"""
Action intents exchanged between devices for multi-device play.

The relay forwards opaque ``{"type": "action", "payload": ...}`` messages
between the members of a room without looking at them. The payload is one
of the intents below: the raw action a player took, not its outcome. Each
receiving device validates the intent and applies the same Match action
locally; because every random choice in the engine derives from the match
seed, replicas that apply the same intents stay identical.

Usage:
    message = to_relay_message(ReplaceIntent(row=0, col=2, seat=1))
    ...
    intent = from_relay_message(message)
    if intent is not None:
        apply_intent(match, intent)
"""

import json
import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from golf9.constants import MAX_PLAYERS
from golf9.match import Match

logger = logging.getLogger(__name__)


class IntentError(ValueError):
    """Raised when a relayed payload is not a valid action intent."""


class _Intent(BaseModel):
    """Common fields for all intents."""

    seat: Optional[int] = Field(default=None, ge=0, le=MAX_PLAYERS - 1)
    """Player index of the sender; checked against the acting player."""

    now: Optional[float] = None
    """Sender's clock when the action was taken."""


class FlipPeekIntent(_Intent):
    type: Literal["flip_peek"] = "flip_peek"
    row: int = Field(ge=0, le=2)
    col: int = Field(ge=0, le=2)


class AdvancePeekIntent(_Intent):
    type: Literal["advance_peek"] = "advance_peek"


class DrawDeckIntent(_Intent):
    type: Literal["draw_deck"] = "draw_deck"


class TakeDiscardIntent(_Intent):
    type: Literal["take_discard"] = "take_discard"


class ReplaceIntent(_Intent):
    type: Literal["replace"] = "replace"
    row: int = Field(ge=0, le=2)
    col: int = Field(ge=0, le=2)


class DiscardHeldIntent(_Intent):
    type: Literal["discard_held"] = "discard_held"


class ExpireIntent(_Intent):
    """The sender's deadline fired; replicas run the same fallback."""
    type: Literal["expire"] = "expire"


class NextRoundIntent(_Intent):
    type: Literal["next_round"] = "next_round"


ActionIntent = Annotated[
    Union[
        FlipPeekIntent,
        AdvancePeekIntent,
        DrawDeckIntent,
        TakeDiscardIntent,
        ReplaceIntent,
        DiscardHeldIntent,
        ExpireIntent,
        NextRoundIntent,
    ],
    Field(discriminator="type"),
]

_intent_adapter: TypeAdapter = TypeAdapter(ActionIntent)


# -------------------------------------------------------------------------
# Encoding
# -------------------------------------------------------------------------

def decode_intent(payload: Union[str, bytes, dict]) -> ActionIntent:
    """
    Validate a relayed payload.

    Args:
        payload: JSON text or an already-parsed dict.

    Returns:
        The matching intent model.

    Raises:
        IntentError: If the payload is not valid JSON or not a known intent.
    """
    try:
        if isinstance(payload, (str, bytes)):
            return _intent_adapter.validate_json(payload)
        return _intent_adapter.validate_python(payload)
    except ValidationError as e:
        raise IntentError(f"Invalid action intent: {e}") from e


def encode_intent(intent: ActionIntent) -> dict:
    """Serialize an intent to a JSON-compatible dict."""
    return intent.model_dump(exclude_none=True)


def to_relay_message(intent: ActionIntent) -> str:
    """Wrap an intent in the relay's action envelope."""
    return json.dumps({"type": "action", "payload": encode_intent(intent)})


def from_relay_message(message: Union[str, bytes, dict]) -> Optional[ActionIntent]:
    """
    Unwrap a relay message.

    Returns:
        The intent for ``action`` messages, None for anything else
        (``sys`` notifications, room bookkeeping).

    Raises:
        IntentError: If the message or its payload is malformed.
    """
    if isinstance(message, (str, bytes)):
        try:
            message = json.loads(message)
        except json.JSONDecodeError as e:
            raise IntentError(f"Relay message is not JSON: {e}") from e

    if not isinstance(message, dict):
        raise IntentError("Relay message must be a JSON object")

    if message.get("type") != "action":
        return None

    payload = message.get("payload")
    if payload is None:
        raise IntentError("Action message has no payload")
    return decode_intent(payload)


# -------------------------------------------------------------------------
# Applying
# -------------------------------------------------------------------------

def _apply_flip_peek(match: Match, intent: FlipPeekIntent) -> bool:
    return match.flip_for_peek(intent.row, intent.col, now=intent.now)


def _apply_advance_peek(match: Match, intent: AdvancePeekIntent) -> bool:
    return match.advance_peek(now=intent.now)


def _apply_draw_deck(match: Match, intent: DrawDeckIntent) -> bool:
    return match.draw_from_deck(now=intent.now) is not None


def _apply_take_discard(match: Match, intent: TakeDiscardIntent) -> bool:
    return match.take_discard(now=intent.now) is not None


def _apply_replace(match: Match, intent: ReplaceIntent) -> bool:
    return match.replace(intent.row, intent.col, now=intent.now)


def _apply_discard_held(match: Match, intent: DiscardHeldIntent) -> bool:
    return match.discard_held(now=intent.now)


def _apply_expire(match: Match, intent: ExpireIntent) -> bool:
    # The sender's deadline passed; force the fallback regardless of local clock
    deadline = match.deadline
    if deadline is None:
        return False
    now = max(deadline, intent.now if intent.now is not None else deadline)
    return match.resolve_expiry(now=now).fired


def _apply_next_round(match: Match, intent: NextRoundIntent) -> bool:
    return match.next_round(now=intent.now)


INTENT_HANDLERS: dict[str, Any] = {
    "flip_peek": _apply_flip_peek,
    "advance_peek": _apply_advance_peek,
    "draw_deck": _apply_draw_deck,
    "take_discard": _apply_take_discard,
    "replace": _apply_replace,
    "discard_held": _apply_discard_held,
    "expire": _apply_expire,
    "next_round": _apply_next_round,
}


def apply_intent(match: Match, intent: ActionIntent) -> bool:
    """
    Apply a decoded intent to a local match.

    Intents whose seat is not the player expected to act are ignored.

    Returns:
        True if the match changed.
    """
    acting = match.acting_index
    if intent.seat is not None and acting is not None and intent.seat != acting:
        logger.warning(f"Ignoring {intent.type} from seat {intent.seat}, seat {acting} is acting")
        return False

    handler = INTENT_HANDLERS[intent.type]
    applied = handler(match, intent)
    if not applied:
        logger.debug(f"Intent {intent.type} had no effect")
    return applied
