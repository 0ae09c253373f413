"""
Commit-reveal for hidden cards.

commitHash = keccak(abi.encodePacked(bytes32 domSep, uint256 channelId,
uint8 slot, uint8 card, bytes32 salt)). A fresh 32-byte salt is drawn per
commitment and must never be reused across slots or hands.
"""
import logging
import secrets
from typing import Iterable, List, Optional, Tuple

from hup.canon import check_uint, hex32, keccak256, packed_encode, to_bytes32
from hup.chain import ChainHead, advance
from hup.eip712 import card_commit_digest
from hup.errors import EncodingError
from hup.schemas import CardCommit, CommitOpening

logger = logging.getLogger(__name__)

SALT_BYTES = 32

# Card encoding: (suit << 4) | rank
# suits 0=Clubs 1=Diamonds 2=Hearts 3=Spades, ranks 1=Ace .. 13=King


def make_card(suit: int, rank: int) -> int:
    if not 0 <= suit <= 3:
        raise EncodingError(f"suit {suit} out of range", {"suit": suit})
    if not 1 <= rank <= 13:
        raise EncodingError(f"rank {rank} out of range", {"rank": rank})
    return (suit << 4) | rank


def card_suit(card: int) -> int:
    return (card >> 4) & 0x0F


def card_rank(card: int) -> int:
    return card & 0x0F


def card_to_index(card: int) -> int:
    """0..51 deck index, rank-major."""
    rank, suit = card_rank(card), card_suit(card)
    if not 1 <= rank <= 13 or suit > 3:
        raise EncodingError(f"not a card: {card:#x}", {"card": card})
    return (rank - 1) * 4 + suit


def new_salt() -> bytes:
    return secrets.token_bytes(SALT_BYTES)


def commit_hash(separator: bytes, channel_id: int, slot: int, card: int, salt: bytes) -> bytes:
    packed = packed_encode(
        ["bytes32", "uint256", "uint8", "uint8", "bytes32"],
        [
            to_bytes32(separator, "domain_separator"),
            check_uint(channel_id, 256, "channel_id"),
            check_uint(int(slot), 8, "slot"),
            check_uint(card, 8, "card"),
            to_bytes32(salt, "salt"),
        ],
    )
    return keccak256(packed)


def matches(commitment: bytes, separator: bytes, channel_id: int, slot: int, card: int, salt: bytes) -> bool:
    expected = commit_hash(separator, channel_id, slot, card, salt)
    return secrets.compare_digest(expected, to_bytes32(commitment, "commit_hash"))


def verify_opening(cc: CardCommit, separator: bytes, opening: CommitOpening) -> bool:
    ok = matches(cc.commit_hash, separator, cc.channel_id, cc.slot, opening.card, opening.salt)
    if not ok:
        logger.warning("[HUP:reveal] opening does not match commitment ch=%s hand=%s slot=%s commit=%s",
                       cc.channel_id, cc.hand_id, cc.slot, hex32(cc.commit_hash))
    return ok


def build_card_commit(
    separator: bytes,
    head: ChainHead,
    slot: int,
    card: int,
    salt: Optional[bytes] = None,
) -> Tuple[CardCommit, CommitOpening]:
    """Commit `card` at `slot` as the next link after `head`."""
    salt = new_salt() if salt is None else to_bytes32(salt, "salt")
    cc = CardCommit(
        channel_id=head.channel_id,
        hand_id=head.hand_id,
        seq=head.seq + 1,
        slot=int(slot),
        commit_hash=commit_hash(separator, head.channel_id, slot, card, salt),
        prev_hash=head.last_digest,
    )
    return cc, CommitOpening(card=card, salt=salt)


def commit_cards(
    separator: bytes,
    head: ChainHead,
    slot_cards: Iterable[Tuple[int, int]],
) -> Tuple[List[Tuple[CardCommit, CommitOpening]], ChainHead]:
    """
    Commit several (slot, card) pairs as consecutive chain links.
    Returns the commitments with their openings and the advanced head.
    """
    out = []
    seen_slots = set()
    seen_salts = set()
    for slot, card in slot_cards:
        if slot in seen_slots:
            raise EncodingError(f"slot {int(slot)} committed twice", {"slot": int(slot)})
        cc, opening = build_card_commit(separator, head, slot, card)
        if opening.salt in seen_salts:
            raise EncodingError("salt reused across slots", {"slot": int(slot)})
        seen_slots.add(slot)
        seen_salts.add(opening.salt)
        out.append((cc, opening))
        head = advance(head, card_commit_digest(separator, cc))
    return out, head
