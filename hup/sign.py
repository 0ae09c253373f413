import logging
from typing import Iterable, List, Tuple, Union

from eth_account import Account
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError
from hexbytes import HexBytes

from hup.canon import canon_addr, hex32, to_bytes32, to_raw
from hup.eip712 import action_digest, card_commit_digest
from hup.errors import EncodingError, SenderMismatchError, SignatureFormatError
from hup.schemas import Action, CardCommit

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

KeyLike = Union[bytes, str]
SigLike = Union[bytes, bytearray, str]


def _private_key(secret_key: KeyLike) -> keys.PrivateKey:
    try:
        return keys.PrivateKey(HexBytes(secret_key))
    except (ValueError, KeyValidationError) as e:
        # never echo the key itself
        raise EncodingError("private key must be 32 bytes") from e


def address_of(secret_key: KeyLike) -> str:
    """Checksummed address controlled by `secret_key`."""
    return Account.from_key(_private_key(secret_key).to_bytes()).address


def sign_digest(secret_key: KeyLike, digest: bytes) -> bytes:
    """65-byte r ‖ s ‖ v signature over a 32-byte digest, v in {27, 28}."""
    sk = _private_key(secret_key)
    sig = sk.sign_msg_hash(to_bytes32(digest, "digest"))
    v = 27 if sig.v in (0, 27) else 28
    return sig.r.to_bytes(32, "big") + sig.s.to_bytes(32, "big") + bytes([v])


def split_signature(signature: SigLike) -> Tuple[int, int, int]:
    """(v, r, s) with v normalised to {0, 1} for eth_keys.Signature."""
    try:
        raw = to_raw(signature, "signature")
    except EncodingError as e:
        raise SignatureFormatError(e.message, e.details) from e
    if len(raw) != SIGNATURE_LENGTH:
        raise SignatureFormatError(
            f"signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}",
            {"length": len(raw)},
        )
    v_val = raw[64]
    if v_val not in (0, 1, 27, 28):
        raise SignatureFormatError(f"signature parity byte {v_val} not in {{0,1,27,28}}", {"v": v_val})
    v = 0 if v_val in (0, 27) else 1
    s = int.from_bytes(raw[32:64], "big")
    # upper-half s is the malleable twin of a low-s signature
    if s > SECP256K1_N // 2:
        raise SignatureFormatError("signature s value in upper half of curve order", {"s": hex(s)})
    return v, int.from_bytes(raw[0:32], "big"), s


def recover_signer(digest: bytes, signature: SigLike) -> str:
    """Address that produced `signature` over `digest`. Says nothing about who *should* have."""
    digest = to_bytes32(digest, "digest")
    v, r, s = split_signature(signature)
    try:
        sig = keys.Signature(vrs=(v, r, s))  # v,r,s order
        pub = sig.recover_public_key_from_msg_hash(digest)
    except (BadSignature, KeyValidationError) as e:
        raise SignatureFormatError(f"signature recovery failed: {e}", {"digest": hex32(digest)}) from e
    addr = pub.to_checksum_address()
    logger.debug("[HUP:recover] digest=%s signer=%s", hex32(digest), addr)
    return addr


def recover_action_signer(separator: bytes, action: Action, signature: SigLike) -> str:
    return recover_signer(action_digest(separator, action), signature)


def recover_card_commit_signer(separator: bytes, cc: CardCommit, signature: SigLike) -> str:
    return recover_signer(card_commit_digest(separator, cc), signature)


def require_sender(separator: bytes, action: Action, signature: SigLike) -> str:
    """Recover the signer and insist it is the action's declared sender."""
    return check_sender(action, recover_action_signer(separator, action, signature))


def check_sender(action: Action, recovered: str) -> str:
    declared = canon_addr(action.sender, "sender")
    if recovered != declared:
        logger.warning("[HUP:sender-mismatch] ch=%s hand=%s seq=%s declared=%s recovered=%s",
                       action.channel_id, action.hand_id, action.seq, declared, recovered)
        raise SenderMismatchError(
            f"action seq {action.seq} signed by {recovered}, declared sender {declared}",
            {"declared": declared, "recovered": recovered, "seq": action.seq},
        )
    return recovered


def is_authorized(separator: bytes, action: Action, signature: SigLike) -> bool:
    """Boolean form of require_sender. Malformed signatures still raise."""
    try:
        require_sender(separator, action, signature)
    except SenderMismatchError:
        return False
    return True


def sign_actions(actions: Iterable[Action], secret_keys: Iterable[KeyLike], separator: bytes) -> List[bytes]:
    """Sign each action with whichever key controls its sender address."""
    by_addr = {address_of(k): k for k in secret_keys}
    signatures = []
    for action in actions:
        sender = canon_addr(action.sender, "sender")
        key = by_addr.get(sender)
        if key is None:
            raise SenderMismatchError(f"No signer found for sender {sender}", {"declared": sender, "seq": action.seq})
        signatures.append(sign_digest(key, action_digest(separator, action)))
    return signatures


def sign_card_commit(separator: bytes, cc: CardCommit, key_a: KeyLike, key_b: KeyLike) -> Tuple[bytes, bytes]:
    """Both players co-sign every card commitment."""
    digest = card_commit_digest(separator, cc)
    return sign_digest(key_a, digest), sign_digest(key_b, digest)
