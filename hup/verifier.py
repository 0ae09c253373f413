"""
Message verification against a caller-held chain head.

verify_* run, in order: chain position (seq), chain link (prev_hash),
signature recovery, sender binding. The first failure propagates as its
typed error; on success the caller gets the advanced ChainHead back.
"""
import logging
from typing import Iterable, Optional, Sequence

from hup.canon import canon_addr, hex32
from hup.chain import ChainHead, advance, check_link
from hup.eip712 import action_digest, card_commit_digest
from hup.errors import EncodingError, HeadsUpError, SenderMismatchError, SequenceError
from hup.logs import VerificationLogger
from hup.schemas import Action, CardCommit
from hup.sign import SigLike, check_sender, recover_signer

logger = logging.getLogger(__name__)


def _players(players: Optional[Iterable[str]]):
    if players is None:
        return None
    return {canon_addr(p, "player") for p in players}


def _audit(audit: Optional[VerificationLogger], kind: str, msg, result: str, digest=None, signer=None, message=None):
    if audit is None:
        return
    audit.log_outcome(
        kind=kind,
        channel_id=msg.channel_id,
        hand_id=msg.hand_id,
        seq=msg.seq,
        result=result,
        digest=hex32(digest) if digest is not None else None,
        signer=signer,
        message=message,
    )


def verify_action(
    separator: bytes,
    head: ChainHead,
    action: Action,
    signature: SigLike,
    players: Optional[Iterable[str]] = None,
    audit: Optional[VerificationLogger] = None,
) -> ChainHead:
    """Verify one action as the next link after `head`; returns the new head."""
    allowed = _players(players)
    digest = None
    try:
        check_link(head, action)
        digest = action_digest(separator, action)
        signer = check_sender(action, recover_signer(digest, signature))
        if allowed is not None and signer not in allowed:
            raise SenderMismatchError(
                f"sender {signer} is not a player in channel {action.channel_id}",
                {"declared": signer, "seq": action.seq},
            )
    except HeadsUpError as e:
        logger.warning("[HUP:verify] action rejected ch=%s hand=%s seq=%s code=%s msg=%s",
                       action.channel_id, action.hand_id, action.seq, e.error_code, e.message)
        _audit(audit, "action", action, e.error_code, digest=digest, message=e.message)
        raise

    logger.info("[HUP:verify] action ok ch=%s hand=%s seq=%s kind=%s signer=%s",
                action.channel_id, action.hand_id, action.seq, action.action.name, signer)
    _audit(audit, "action", action, "accepted", digest=digest, signer=signer)
    return advance(head, digest)


def verify_card_commit(
    separator: bytes,
    head: ChainHead,
    cc: CardCommit,
    signatures: Sequence[SigLike],
    players: Iterable[str],
    audit: Optional[VerificationLogger] = None,
) -> ChainHead:
    """Verify a card commitment co-signed by both players (any order)."""
    required = _players(players)
    digest = None
    try:
        if required is None or len(required) != 2:
            raise EncodingError(
                f"card commit needs exactly two distinct players, got {len(required or ())}",
                {"players": sorted(required or ())},
            )
        check_link(head, cc)
        if not signatures:
            raise SenderMismatchError(f"card commit seq {cc.seq} carries no signatures", {"seq": cc.seq})
        digest = card_commit_digest(separator, cc)
        signers = {recover_signer(digest, sig) for sig in signatures}
        missing = required - signers
        extra = signers - required
        if missing or extra:
            raise SenderMismatchError(
                f"card commit seq {cc.seq} must be signed by both players",
                {"missing": sorted(missing), "unexpected": sorted(extra), "seq": cc.seq},
            )
    except HeadsUpError as e:
        logger.warning("[HUP:verify] commit rejected ch=%s hand=%s seq=%s code=%s msg=%s",
                       cc.channel_id, cc.hand_id, cc.seq, e.error_code, e.message)
        _audit(audit, "card_commit", cc, e.error_code, digest=digest, message=e.message)
        raise

    logger.info("[HUP:verify] commit ok ch=%s hand=%s seq=%s slot=%s",
                cc.channel_id, cc.hand_id, cc.seq, cc.slot)
    _audit(audit, "card_commit", cc, "accepted", digest=digest)
    return advance(head, digest)


def replay_hand(
    separator: bytes,
    channel_id: int,
    hand_id: int,
    actions: Sequence[Action],
    signatures: Sequence[SigLike],
    players: Optional[Iterable[str]] = None,
    audit: Optional[VerificationLogger] = None,
) -> ChainHead:
    """Verify a whole action sequence from genesis; returns the final head."""
    if len(actions) != len(signatures):
        raise SequenceError(
            f"{len(actions)} actions but {len(signatures)} signatures",
            {"actions": len(actions), "signatures": len(signatures)},
        )
    allowed = None if players is None else list(players)
    head = ChainHead.start(channel_id, hand_id)
    for action, sig in zip(actions, signatures):
        head = verify_action(separator, head, action, sig, players=allowed, audit=audit)
    logger.info("[HUP:replay] ch=%s hand=%s verified %s actions head=%s",
                channel_id, hand_id, head.seq, hex32(head.last_digest))
    return head
