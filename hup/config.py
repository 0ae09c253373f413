# config.py
from dataclasses import dataclass
import os
from dotenv import load_dotenv

from hup.errors import ConfigurationError, EncodingError
from hup.schemas import DEFAULT_DOMAIN_NAME, DEFAULT_DOMAIN_VERSION, Domain, parse_domain

load_dotenv()  # local runs; deployments pass envs directly


@dataclass(frozen=True)
class DomainConfig:
    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def to_domain(self) -> Domain:
        return parse_domain({
            "name": self.name,
            "version": self.version,
            "chain_id": self.chain_id,
            "verifying_contract": self.verifying_contract,
        })


@dataclass(frozen=True)
class LogConfig:
    log_dir: str
    level: str


@dataclass(frozen=True)
class AppConfig:
    domain: DomainConfig
    log: LogConfig


def _require(name: str) -> str:
    v = os.getenv(name)
    if not v:
        raise ConfigurationError(f"[CONFIG] Missing env var: {name}", {"var": name})
    return v


def load_config() -> AppConfig:
    raw_chain = _require("HUP_CHAIN_ID")
    try:
        chain_id = int(raw_chain, 0)
    except ValueError:
        raise ConfigurationError("[CONFIG] HUP_CHAIN_ID must be an integer", {"var": "HUP_CHAIN_ID"})

    level = os.getenv("HUP_LOG_LEVEL", "INFO").upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        raise ConfigurationError("[CONFIG] HUP_LOG_LEVEL must be DEBUG, INFO, WARNING or ERROR")

    domain = DomainConfig(
        name=os.getenv("HUP_DOMAIN_NAME", DEFAULT_DOMAIN_NAME),
        version=os.getenv("HUP_DOMAIN_VERSION", DEFAULT_DOMAIN_VERSION),
        chain_id=chain_id,
        verifying_contract=_require("HUP_VERIFYING_CONTRACT"),
    )
    try:
        domain.to_domain()
    except EncodingError as e:
        raise ConfigurationError("[CONFIG] Invalid verifying domain", e.details) from e

    return AppConfig(
        domain=domain,
        log=LogConfig(
            log_dir=os.getenv("HUP_LOG_DIR", "logs/verifications"),
            level=level,
        ),
    )


def redacted(cfg: AppConfig) -> dict:
    return {
        "domain": {
            "name": cfg.domain.name,
            "version": cfg.domain.version,
            "chain_id": cfg.domain.chain_id,
            "verifying_contract": cfg.domain.verifying_contract[:6] + "..." + cfg.domain.verifying_contract[-4:],
        },
        "log": {"log_dir": cfg.log.log_dir, "level": cfg.log.level},
    }
