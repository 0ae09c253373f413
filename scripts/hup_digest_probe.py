import os, sys, logging
from pathlib import Path
# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from hup.config import load_config, redacted
from hup.chain import ChainHead, build_actions, genesis
from hup.eip712 import ACTION_TYPEHASH, CARD_COMMIT_TYPEHASH, DOMAIN_TYPEHASH, action_digest, domain_separator
from hup.schemas import ActionKind
from hup.sign import address_of, recover_action_signer, sign_digest

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

cfg = load_config()
print("[config]", redacted(cfg))

domain = cfg.domain.to_domain()
sep = domain_separator(domain)
print(f"[typehash] domain=0x{DOMAIN_TYPEHASH.hex()}")
print(f"[typehash] action=0x{ACTION_TYPEHASH.hex()}")
print(f"[typehash] commit=0x{CARD_COMMIT_TYPEHASH.hex()}")
print(f"[domain] separator=0x{sep.hex()}")

CHANNEL_ID = int(os.getenv("HUP_PROBE_CHANNEL", "1"))
HAND_ID = int(os.getenv("HUP_PROBE_HAND", "1"))
print(f"[genesis] ch={CHANNEL_ID} hand={HAND_ID} value=0x{genesis(CHANNEL_ID, HAND_ID).hex()}")

PRIV = os.getenv("HUP_PROBE_KEY")
if not PRIV:
    print("[probe] HUP_PROBE_KEY not set; skipping sign/recover")
    sys.exit(0)

me = address_of(PRIV)
actions = build_actions(
    [{"action": ActionKind.SMALL_BLIND, "amount": 1, "sender": me}],
    sep,
    start=ChainHead.start(CHANNEL_ID, HAND_ID),
)
digest = action_digest(sep, actions[0])
sig = sign_digest(PRIV, digest)
recovered = recover_action_signer(sep, actions[0], sig)
print(f"[action] digest=0x{digest.hex()}")
print(f"[action] sig=0x{sig.hex()}")
print(f"[action] recovered={recovered} match={recovered == me}")
