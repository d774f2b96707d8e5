"""TOML configuration loader for the rewards service."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class StorageConfig:
    backend: str = "local"
    root: str = "~/.local/share/niche-rewards/receipts"
    bucket: str = "receipts-original"
    url_ttl: int = 300  # seconds


@dataclass
class GeminiOCRConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class ClaudeOCRConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class OCRConfig:
    backend: str = "gemini"
    gemini: GeminiOCRConfig = field(default_factory=GeminiOCRConfig)
    claude: ClaudeOCRConfig = field(default_factory=ClaudeOCRConfig)


@dataclass
class ScoringConfig:
    """Approval thresholds and point multipliers."""

    approve_threshold: float = 0.8
    reject_threshold: float = 0.3
    fuel_approve_threshold: float = 0.6
    fuel_multiplier: float = 1.5
    default_currency: str = "PKR"


@dataclass
class DatabaseConfig:
    backend: str = "sqlite"
    path: str = "~/.config/niche-rewards/rewards.db"


@dataclass
class SupabaseConfig:
    url: str = ""
    key: str = ""


@dataclass
class ReconcileConfig:
    schedule: str = "*/15 * * * *"
    batch_size: int = 100


@dataclass
class RewardsConfig:
    storage: StorageConfig = field(default_factory=StorageConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    reconcile: ReconcileConfig = field(default_factory=ReconcileConfig)


def load_config(path: str | Path | None = None) -> RewardsConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys and Supabase credentials can be supplied via environment
    variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    sto = raw.get("storage", {})
    ocr = raw.get("ocr", {})
    scr = raw.get("scoring", {})
    dbs = raw.get("database", {})
    spb = raw.get("supabase", {})
    rec = raw.get("reconcile", {})

    gemini_cfg = ocr.get("gemini", {})
    claude_cfg = ocr.get("claude", {})

    # Resolve secrets: config file → environment variable
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    supabase_url = spb.get("url", "") or os.environ.get("SUPABASE_URL", "")
    supabase_key = spb.get("key", "") or os.environ.get(
        "SUPABASE_SERVICE_ROLE_KEY", ""
    )

    defaults = ScoringConfig()

    return RewardsConfig(
        storage=StorageConfig(
            backend=sto.get("backend", "local"),
            root=sto.get("root", StorageConfig.root),
            bucket=sto.get("bucket", "receipts-original"),
            url_ttl=sto.get("url_ttl", 300),
        ),
        ocr=OCRConfig(
            backend=ocr.get("backend", "gemini"),
            gemini=GeminiOCRConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.0-flash"),
            ),
            claude=ClaudeOCRConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
        ),
        scoring=ScoringConfig(
            approve_threshold=scr.get(
                "approve_threshold", defaults.approve_threshold
            ),
            reject_threshold=scr.get("reject_threshold", defaults.reject_threshold),
            fuel_approve_threshold=scr.get(
                "fuel_approve_threshold", defaults.fuel_approve_threshold
            ),
            fuel_multiplier=scr.get("fuel_multiplier", defaults.fuel_multiplier),
            default_currency=scr.get("default_currency", defaults.default_currency),
        ),
        database=DatabaseConfig(
            backend=dbs.get("backend", "sqlite"),
            path=dbs.get("path", DatabaseConfig.path),
        ),
        supabase=SupabaseConfig(url=supabase_url, key=supabase_key),
        reconcile=ReconcileConfig(
            schedule=rec.get("schedule", "*/15 * * * *"),
            batch_size=rec.get("batch_size", 100),
        ),
    )
