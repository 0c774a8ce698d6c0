"""Configuration models."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("dogscan", description="Database name")
    user: str = Field("dogscan_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class ScanSettings(BaseModel):
    """Decision thresholds and orchestration limits."""

    auto_approval_threshold: float = Field(0.7, ge=0.0, le=1.0)
    auto_rejection_threshold: float = Field(0.3, ge=0.0, le=1.0)
    per_source_timeout_ms: int = Field(30_000, description="Timeout for one adapter call", ge=1)
    overall_timeout_ms: int = Field(120_000, description="Deadline for the fetch phase", ge=1)
    max_concurrency: int = Field(8, description="Concurrent source fetches", ge=1, le=64)
    decision_concurrency: int = Field(8, description="Concurrent decisions", ge=1, le=64)
    topic_gate_policy: Literal["strict", "permissive"] = Field(
        "strict", description="strict rejects items without a topic term"
    )
    default_budget: int = Field(50, description="Total items per scan", ge=1, le=1000)

    @model_validator(mode="after")
    def validate_thresholds(self) -> "ScanSettings":
        """Validate that approval sits above rejection."""
        if self.auto_approval_threshold <= self.auto_rejection_threshold:
            raise ValueError(
                "auto_approval_threshold must be greater than auto_rejection_threshold, "
                f"got {self.auto_approval_threshold} <= {self.auto_rejection_threshold}"
            )
        return self


class FilterSettings(BaseModel):
    """Scoring constants for the filter engine."""

    rules_path: Optional[str] = Field(None, description="YAML rules file; built-in rules if unset")
    base_topic_confidence: float = Field(0.7, ge=0.0, le=1.0)
    fallback_confidence: float = Field(0.3, ge=0.2, le=0.3)
    no_topic_confidence: float = Field(0.2, ge=0.2, le=0.3)
    media_boost: float = Field(0.08, ge=0.02, le=0.15)
    gif_boost: float = Field(0.10, ge=0.02, le=0.15)
    multi_term_boost: float = Field(0.10, ge=0.02, le=0.15)
    engagement_boost: float = Field(0.05, ge=0.02, le=0.15)
    engagement_threshold: float = Field(100.0, description="Engagement needed for the boost", ge=0.0)
    spam_penalty: float = Field(0.5, ge=0.3, le=0.5)
    inappropriate_penalty: float = Field(0.7, ge=0.5, le=0.7)
    unrelated_penalty: float = Field(0.4, ge=0.0, le=1.0)
    spam_heuristic_threshold: float = Field(0.6, ge=0.0, le=1.0)
    short_text_length: int = Field(50, description="Texts shorter than this count as short", ge=0)
    context_terms: List[str] = Field(
        default_factory=lambda: [
            "food", "eat", "cooking", "kitchen", "recipe", "meal",
            "lunch", "dinner", "snack", "yummy", "tasty", "delicious",
        ],
        description="Loosely related terms accepted as secondary evidence",
    )


class DedupSettings(BaseModel):
    """Deduplication options."""

    hash_includes_url: bool = Field(False, description="Fold the canonical URL into the content hash")
    match_canonical_url: bool = Field(True, description="Also treat equal canonical URLs as duplicates")


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    scan: ScanSettings = Field(default_factory=ScanSettings)
    filtering: FilterSettings = Field(default_factory=FilterSettings)
    dedup: DedupSettings = Field(default_factory=DedupSettings)


class SourceConfig(BaseModel):
    """Source configuration from sources.yaml."""

    name: str = Field(..., description="Unique source name, used for attribution")
    platform: str = Field(..., description="Adapter key in the source registry (rss, reddit)")
    url: Optional[str] = Field(None, description="Feed or API URL")
    query: Optional[str] = Field(None, description="Search query for search-based platforms")
    options: Dict[str, Any] = Field(default_factory=dict, description="Platform specific options")
    enabled: bool = Field(True, description="Whether the source is enabled")
    timeout_ms: Optional[int] = Field(None, description="Override of per_source_timeout_ms", ge=1)
