"""
Heads-up poker channel message authentication.

Typed-data hashing, hash-chain linkage, card commitments and signer
recovery for the two-party off-chain channel.
"""

from hup.chain import GENESIS, ChainBook, ChainHead, advance, build_actions, check_link, genesis
from hup.commit import build_card_commit, commit_cards, commit_hash, matches, new_salt, verify_opening
from hup.eip712 import (
    ACTION_TYPEHASH,
    CARD_COMMIT_TYPEHASH,
    DOMAIN_TYPEHASH,
    action_digest,
    action_struct_hash,
    card_commit_digest,
    card_commit_struct_hash,
    domain_separator,
    typed_digest,
)
from hup.errors import (
    ChainMismatchError,
    ConfigurationError,
    EncodingError,
    HeadsUpError,
    SenderMismatchError,
    SequenceError,
    SignatureFormatError,
)
from hup.schemas import Action, ActionKind, CardCommit, CommitOpening, Domain, Slot
from hup.sign import (
    address_of,
    is_authorized,
    recover_action_signer,
    recover_card_commit_signer,
    recover_signer,
    require_sender,
    sign_digest,
)
from hup.verifier import replay_hand, verify_action, verify_card_commit

__version__ = "0.1.0"
