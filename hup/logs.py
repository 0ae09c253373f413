"""
Structured verification logging.
Writes one JSON line per verified (or rejected) message to <log_dir>/YYYY-MM-DD.jsonl
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def setup_log_rotation(path: str = ".run/hup.log", level: str = "INFO") -> TimedRotatingFileHandler:
    """Attach a daily rotating file handler (7 days kept) to the root logger."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    handler = TimedRotatingFileHandler(
        filename=path,
        when="midnight",
        interval=1,
        backupCount=7,
        encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

    logger.info("Log rotation configured (daily, keep 7 days) -> %s", path)
    return handler


class VerificationLog(BaseModel):
    ts: str
    kind: str                      # "action" | "card_commit"
    channel_id: int
    hand_id: int
    seq: int
    digest: Optional[str] = None
    signer: Optional[str] = None
    result: str                    # "accepted" or an error code
    message: Optional[str] = None


class VerificationLogger:
    """Append-only JSONL audit trail of verification outcomes."""

    def __init__(self, log_dir: str = "logs/verifications"):
        self.log_dir = log_dir
        os.makedirs(self.log_dir, exist_ok=True)

    @property
    def log_file(self) -> str:
        day = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        return os.path.join(self.log_dir, f"{day}.jsonl")

    def log_outcome(self,
                    kind: str,
                    channel_id: int,
                    hand_id: int,
                    seq: int,
                    result: str,
                    digest: Optional[str] = None,
                    signer: Optional[str] = None,
                    message: Optional[str] = None):
        entry = VerificationLog(
            ts=datetime.now(timezone.utc).isoformat(),
            kind=kind,
            channel_id=channel_id,
            hand_id=hand_id,
            seq=seq,
            digest=digest,
            signer=signer,
            result=result,
            message=message,
        )
        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(entry.model_dump_json() + "\n")
        except OSError as e:
            logger.error(f"Failed to write verification log: {e}")

    def get_recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Most recent entries from today's file."""
        if not os.path.exists(self.log_file):
            return []

        entries = []
        with open(self.log_file, "r", encoding="utf-8") as f:
            lines = f.readlines()
            for line in lines[-limit:]:
                try:
                    entries.append(json.loads(line.strip()))
                except json.JSONDecodeError:
                    continue
        return entries
