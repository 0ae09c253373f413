"""
Hash-chain linkage for the messages of one hand.

Each message's prev_hash is the signed digest of its predecessor; the first
message links to the hand's genesis value. The core never owns chain state:
callers hold ChainHead values (or a ChainBook) and pass them in.
"""
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from hup.canon import check_uint, hex32, keccak256, packed_encode, to_bytes32
from hup.eip712 import action_digest
from hup.errors import ChainMismatchError, EncodingError, SequenceError
from hup.schemas import Action, parse_action

logger = logging.getLogger(__name__)

GENESIS_TAG = "HUP_GENESIS"


def genesis(channel_id: int, hand_id: int) -> bytes:
    """keccak(abi.encodePacked("HUP_GENESIS", uint256 handId)).

    channel_id is accepted but not hashed, so two channels that share a hand
    index share a genesis value. Kept that way to stay digest-compatible
    with the deployed verifier.
    """
    check_uint(channel_id, 256, "channel_id")
    return keccak256(packed_encode(["string", "uint256"], [GENESIS_TAG, check_uint(hand_id, 256, "hand_id")]))


GENESIS = genesis(1, 1)


@dataclass(frozen=True)
class ChainHead:
    channel_id: int
    hand_id: int
    seq: int             # messages accepted so far; 0 at genesis
    last_digest: bytes   # genesis value while seq == 0

    @classmethod
    def start(cls, channel_id: int, hand_id: int) -> "ChainHead":
        return cls(channel_id=channel_id, hand_id=hand_id, seq=0, last_digest=genesis(channel_id, hand_id))

    @property
    def key(self) -> Tuple[int, int]:
        return (self.channel_id, self.hand_id)


def expected_prev_hash(head: ChainHead) -> bytes:
    return head.last_digest


def check_link(head: ChainHead, msg) -> None:
    """Raise unless `msg` (Action or CardCommit) is the next link after `head`."""
    if (msg.channel_id, msg.hand_id) != head.key:
        raise ChainMismatchError(
            "message belongs to a different hand",
            {"expected": list(head.key), "got": [msg.channel_id, msg.hand_id]},
        )
    if msg.seq != head.seq + 1:
        raise SequenceError(
            f"expected seq {head.seq + 1}, got {msg.seq}",
            {"channel_id": head.channel_id, "hand_id": head.hand_id, "expected": head.seq + 1, "got": msg.seq},
        )
    prev = to_bytes32(msg.prev_hash, "prev_hash")
    if prev != head.last_digest:
        raise ChainMismatchError(
            f"prev_hash does not match chain head at seq {msg.seq}",
            {
                "channel_id": head.channel_id,
                "hand_id": head.hand_id,
                "seq": msg.seq,
                "expected": hex32(head.last_digest),
                "got": hex32(prev),
            },
        )


def advance(head: ChainHead, digest: bytes) -> ChainHead:
    new_head = replace(head, seq=head.seq + 1, last_digest=to_bytes32(digest, "digest"))
    logger.debug("[HUP:chain] ch=%s hand=%s head seq=%s digest=%s",
                 head.channel_id, head.hand_id, new_head.seq, hex32(new_head.last_digest))
    return new_head


class ChainBook:
    """In-memory (channel_id, hand_id) -> ChainHead map for a channel session."""

    def __init__(self):
        self._heads: Dict[Tuple[int, int], ChainHead] = {}

    def head(self, channel_id: int, hand_id: int) -> ChainHead:
        found = self._heads.get((channel_id, hand_id))
        if found is None:
            return ChainHead.start(channel_id, hand_id)
        return found

    def record(self, head: ChainHead) -> None:
        current = self._heads.get(head.key)
        if current is not None and head.seq <= current.seq:
            raise SequenceError(
                f"refusing to move head backwards ({current.seq} -> {head.seq})",
                {"channel_id": head.channel_id, "hand_id": head.hand_id},
            )
        self._heads[head.key] = head

    def reset(self, channel_id: int, hand_id: int) -> None:
        self._heads.pop((channel_id, hand_id), None)

    def __len__(self) -> int:
        return len(self._heads)

    def __contains__(self, key) -> bool:
        return key in self._heads


def build_actions(
    specs: Iterable[Mapping[str, Any]],
    separator: bytes,
    channel_id: int = 1,
    hand_id: int = 1,
    start: Optional[ChainHead] = None,
) -> List[Action]:
    """
    Build a linked run of Actions from {action, amount, sender} specs.
    Sequence numbers continue from `start` (genesis by default) and every
    prev_hash is the digest of the action before it.
    """
    head = start or ChainHead.start(channel_id, hand_id)
    actions = []

    for i, spec in enumerate(specs):
        if not spec.get("sender"):
            raise EncodingError(f"Action at index {i} must have an explicit sender address", {"index": i})

        act = parse_action({
            "channel_id": head.channel_id,
            "hand_id": head.hand_id,
            "seq": head.seq + 1,
            "action": spec["action"],
            "amount": spec.get("amount", 0),
            "prev_hash": head.last_digest,
            "sender": spec["sender"],
        })
        actions.append(act)
        head = advance(head, action_digest(separator, act))
    return actions
