"""Runtime settings for splscan.

Two sources feed the pipeline's configuration:

- ``SplscanSettings``: environment-driven (``SPLSCAN_`` prefix, ``.env``
  file) settings validated by pydantic-settings. CLI options override them.
- The Solana CLI config (``~/.config/solana/cli/config.yml``), read with
  PyYAML, which supplies the default RPC endpoint, commitment and keypair
  when nothing explicit is given.

Examples:
    >>> settings = SplscanSettings(rpc_url="https://api.devnet.solana.com")
    >>> resolve_endpoint(settings, None)
    ('https://api.devnet.solana.com', 'confirmed')
"""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from solders.keypair import Keypair

from splscan.core.errors import ConfigError, MissingConfigError

DEFAULT_COMMITMENT = "confirmed"


class SplscanSettings(BaseSettings):
    """Settings shared by every splscan command.

    Fields
    ──────
    rpc_url        : RPC endpoint for single-account reads and submissions
    heavy_rpc_url  : Endpoint for bulk program-account scans (defaults to rpc_url)
    timeout        : RPC request timeout in seconds
    commitment     : Commitment used with an explicit rpc_url or heavy_rpc_url
    keypair_path   : Signing keypair for ``metadata sign-all``
    rate_limit     : Space out RPC calls made by batch workers
    rpc_delay_ms   : Override the per-endpoint delay between calls
    artifact_dir   : Root directory for stage artifacts
    log_level      : Structlog log level
    json_logs      : Force JSON logs (None = auto-detect)
    """

    model_config = SettingsConfigDict(
        env_prefix="SPLSCAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Network ──────────────────────────────────────────────────
    rpc_url: str | None = None
    heavy_rpc_url: str | None = None
    timeout: int = Field(default=60, gt=0)
    commitment: str = DEFAULT_COMMITMENT

    # ── Signing ──────────────────────────────────────────────────
    keypair_path: Path | None = None

    # ── Throttling ───────────────────────────────────────────────
    rate_limit: bool = False
    rpc_delay_ms: int | None = Field(default=None, ge=0)

    # ── Storage / observability ──────────────────────────────────
    artifact_dir: Path = Path(".")
    log_level: str = "INFO"
    json_logs: bool | None = None


class SolanaCliConfig(BaseModel):
    """The fields splscan reads from the Solana CLI config file."""

    json_rpc_url: str
    keypair_path: str
    commitment: str = DEFAULT_COMMITMENT


def default_cli_config_path() -> Path:
    return Path.home() / ".config" / "solana" / "cli" / "config.yml"


def load_solana_cli_config(path: Path | None = None) -> SolanaCliConfig | None:
    """Read the Solana CLI config, or ``None`` if it is absent or unusable."""
    config_path = path or default_cli_config_path()
    try:
        with config_path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return None
    if not isinstance(raw, dict):
        return None
    try:
        return SolanaCliConfig.model_validate(raw)
    except ValidationError:
        return None


def resolve_endpoint(
    settings: SplscanSettings,
    cli_config: SolanaCliConfig | None,
) -> tuple[str, str]:
    """Pick ``(rpc_url, commitment)``: explicit setting first, then the CLI config."""
    if settings.rpc_url:
        return settings.rpc_url, settings.commitment
    if cli_config is not None:
        return cli_config.json_rpc_url, cli_config.commitment
    raise MissingConfigError(
        "rpc_url",
        "Could not find a valid Solana CLI config file. Pass an RPC with "
        "'--rpc' or set up your Solana CLI config file.",
    )


def resolve_keypair_path(
    settings: SplscanSettings,
    cli_config: SolanaCliConfig | None,
) -> Path:
    if settings.keypair_path is not None:
        return settings.keypair_path
    if cli_config is not None:
        return Path(cli_config.keypair_path).expanduser()
    raise MissingConfigError(
        "keypair_path",
        "No keypair given and no Solana CLI config to take one from.",
    )


def read_keypair_file(path: Path) -> Keypair:
    """Load a Solana CLI keypair file (JSON array of 64 byte values)."""
    try:
        with Path(path).expanduser().open(encoding="utf-8") as f:
            secret = json.load(f)
        return Keypair.from_bytes(bytes(secret))
    except (OSError, ValueError, TypeError) as e:
        raise ConfigError(f"Could not read keypair file {path}", cause=e) from e


__all__ = [
    "DEFAULT_COMMITMENT",
    "SplscanSettings",
    "SolanaCliConfig",
    "load_solana_cli_config",
    "resolve_endpoint",
    "resolve_keypair_path",
    "read_keypair_file",
]
