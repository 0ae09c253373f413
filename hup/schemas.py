"""
Message Schemas - pydantic models for the signed channel messages.
Defines Domain, Action, CardCommit and commitment openings.
"""

from enum import IntEnum
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hup.canon import UINT8_MAX, UINT32_MAX, UINT128_MAX, UINT256_MAX, canon_addr, to_bytes32
from hup.errors import EncodingError, HeadsUpError

DEFAULT_DOMAIN_NAME = "HeadsUpPoker"
DEFAULT_DOMAIN_VERSION = "1"


class ActionKind(IntEnum):
    """Player decision kinds, encoded as uint8."""
    SMALL_BLIND = 0
    BIG_BLIND = 1
    CHECK_CALL = 2
    BET_RAISE = 3
    FOLD = 4


class Slot(IntEnum):
    """Card slots in a heads-up hand: two hole cards each, then the board."""
    A1 = 0
    A2 = 1
    B1 = 2
    B2 = 3
    FLOP1 = 4
    FLOP2 = 5
    FLOP3 = 6
    TURN = 7
    RIVER = 8


ALL_SLOTS_MASK = (1 << len(Slot)) - 1  # 0x1FF


def _as_bytes32(v: Any, field: str) -> bytes:
    try:
        return to_bytes32(v, field)
    except HeadsUpError as e:
        # re-raised as ValueError so pydantic reports it alongside other field errors
        raise ValueError(e.message) from e


def _as_address(v: Any, field: str) -> str:
    try:
        return canon_addr(v, field)
    except HeadsUpError as e:
        raise ValueError(e.message) from e


class Domain(BaseModel):
    """Verifying domain; one per deployment."""
    model_config = ConfigDict(frozen=True)

    name: str = DEFAULT_DOMAIN_NAME
    version: str = DEFAULT_DOMAIN_VERSION
    chain_id: int = Field(..., ge=0, le=UINT256_MAX)
    verifying_contract: str

    @field_validator("verifying_contract", mode="before")
    @classmethod
    def normalize_contract(cls, v):
        return _as_address(v, "verifying_contract")


class Action(BaseModel):
    """One player decision at position `seq` of a hand."""
    model_config = ConfigDict(frozen=True)

    channel_id: int = Field(..., ge=0, le=UINT256_MAX)
    hand_id: int = Field(..., ge=0, le=UINT256_MAX)
    seq: int = Field(..., ge=0, le=UINT32_MAX)
    action: ActionKind
    amount: int = Field(..., ge=0, le=UINT128_MAX)
    prev_hash: bytes
    sender: str

    @field_validator("prev_hash", mode="before")
    @classmethod
    def normalize_prev_hash(cls, v):
        return _as_bytes32(v, "prev_hash")

    @field_validator("sender", mode="before")
    @classmethod
    def normalize_sender(cls, v):
        return _as_address(v, "sender")


class CardCommit(BaseModel):
    """A committed-but-unrevealed card at a given slot."""
    model_config = ConfigDict(frozen=True)

    channel_id: int = Field(..., ge=0, le=UINT256_MAX)
    hand_id: int = Field(..., ge=0, le=UINT256_MAX)
    seq: int = Field(..., ge=0, le=UINT32_MAX)
    slot: int = Field(..., ge=0, le=UINT8_MAX)
    commit_hash: bytes
    prev_hash: bytes

    @field_validator("commit_hash", "prev_hash", mode="before")
    @classmethod
    def normalize_hashes(cls, v, info):
        return _as_bytes32(v, info.field_name)


class CommitOpening(BaseModel):
    """Private (card, salt) pair disclosed at reveal time."""
    model_config = ConfigDict(frozen=True)

    card: int = Field(..., ge=0, le=UINT8_MAX)
    salt: bytes

    @field_validator("salt", mode="before")
    @classmethod
    def normalize_salt(cls, v):
        return _as_bytes32(v, "salt")


M = TypeVar("M", bound=BaseModel)


def _parse(model: Type[M], data: Dict[str, Any]) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = [
            {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise EncodingError(f"invalid {model.__name__}", {"errors": errors}) from e


def parse_domain(data: Dict[str, Any]) -> Domain:
    return _parse(Domain, data)


def parse_action(data: Dict[str, Any]) -> Action:
    return _parse(Action, data)


def parse_card_commit(data: Dict[str, Any]) -> CardCommit:
    return _parse(CardCommit, data)


def parse_opening(data: Dict[str, Any]) -> CommitOpening:
    return _parse(CommitOpening, data)
