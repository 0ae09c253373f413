"""
Typed-data hashing for channel messages: domain separator, struct hashes, digest.

Type strings must byte-match the on-chain verifier, whitespace included, or
no digest computed here will verify anywhere else.
"""
import logging
from functools import lru_cache

from hup.canon import (
    abi_encode,
    check_uint,
    hex32,
    keccak256,
    to_address_bytes,
    to_bytes32,
)
from hup.errors import EncodingError
from hup.schemas import Action, CardCommit, Domain

logger = logging.getLogger(__name__)

DOMAIN_TYPE = "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
ACTION_TYPE = "Action(uint256 channelId,uint256 handId,uint32 seq,uint8 action,uint128 amount,bytes32 prevHash)"
CARD_COMMIT_TYPE = "CardCommit(uint256 channelId,uint256 handId,uint32 seq,uint8 slot,bytes32 commitHash,bytes32 prevHash)"

DOMAIN_TYPEHASH = keccak256(DOMAIN_TYPE.encode("utf-8"))
ACTION_TYPEHASH = keccak256(ACTION_TYPE.encode("utf-8"))
CARD_COMMIT_TYPEHASH = keccak256(CARD_COMMIT_TYPE.encode("utf-8"))

EIP712_PREFIX = b"\x19\x01"

# sender rides in an extra address slot after prevHash; it is not part of ACTION_TYPE
_ACTION_ABI = ["bytes32", "uint256", "uint256", "uint32", "uint8", "uint128", "bytes32", "address"]
_CARD_COMMIT_ABI = ["bytes32", "uint256", "uint256", "uint32", "uint8", "bytes32", "bytes32"]
_DOMAIN_ABI = ["bytes32", "bytes32", "bytes32", "uint256", "address"]


@lru_cache(maxsize=64)
def domain_separator(domain: Domain) -> bytes:
    """keccak(abi.encode(DOMAIN_TYPEHASH, keccak(name), keccak(version), chainId, verifyingContract))"""
    encoded = abi_encode(
        _DOMAIN_ABI,
        [
            DOMAIN_TYPEHASH,
            keccak256(domain.name.encode("utf-8")),
            keccak256(domain.version.encode("utf-8")),
            check_uint(domain.chain_id, 256, "chain_id"),
            to_address_bytes(domain.verifying_contract, "verifying_contract"),
        ],
    )
    sep = keccak256(encoded)
    logger.debug("[HUP:domain] name=%s version=%s chain=%s contract=%s sep=%s",
                 domain.name, domain.version, domain.chain_id, domain.verifying_contract, hex32(sep))
    return sep


def action_struct_hash(action: Action) -> bytes:
    encoded = abi_encode(
        _ACTION_ABI,
        [
            ACTION_TYPEHASH,
            check_uint(action.channel_id, 256, "channel_id"),
            check_uint(action.hand_id, 256, "hand_id"),
            check_uint(action.seq, 32, "seq"),
            check_uint(int(action.action), 8, "action"),
            check_uint(action.amount, 128, "amount"),
            to_bytes32(action.prev_hash, "prev_hash"),
            to_address_bytes(action.sender, "sender"),
        ],
    )
    return keccak256(encoded)


def card_commit_struct_hash(cc: CardCommit) -> bytes:
    encoded = abi_encode(
        _CARD_COMMIT_ABI,
        [
            CARD_COMMIT_TYPEHASH,
            check_uint(cc.channel_id, 256, "channel_id"),
            check_uint(cc.hand_id, 256, "hand_id"),
            check_uint(cc.seq, 32, "seq"),
            check_uint(cc.slot, 8, "slot"),
            to_bytes32(cc.commit_hash, "commit_hash"),
            to_bytes32(cc.prev_hash, "prev_hash"),
        ],
    )
    return keccak256(encoded)


def typed_digest(separator: bytes, struct_hash: bytes) -> bytes:
    """keccak(0x19 0x01 ‖ separator ‖ structHash): the only value a key ever signs."""
    return keccak256(
        EIP712_PREFIX
        + to_bytes32(separator, "domain_separator")
        + to_bytes32(struct_hash, "struct_hash")
    )


def action_digest(separator: bytes, action: Action) -> bytes:
    digest = typed_digest(separator, action_struct_hash(action))
    logger.debug("[HUP:digest] action ch=%s hand=%s seq=%s digest=%s",
                 action.channel_id, action.hand_id, action.seq, hex32(digest))
    return digest


def card_commit_digest(separator: bytes, cc: CardCommit) -> bytes:
    digest = typed_digest(separator, card_commit_struct_hash(cc))
    logger.debug("[HUP:digest] commit ch=%s hand=%s seq=%s slot=%s digest=%s",
                 cc.channel_id, cc.hand_id, cc.seq, cc.slot, hex32(digest))
    return digest


def message_digest(separator: bytes, msg) -> bytes:
    """Digest of either message shape."""
    if isinstance(msg, Action):
        return action_digest(separator, msg)
    if isinstance(msg, CardCommit):
        return card_commit_digest(separator, msg)
    raise EncodingError(f"unsupported message type {type(msg).__name__}", {"type": type(msg).__name__})
