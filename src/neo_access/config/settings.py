"""
Runtime configuration for neo-access.

All tunables consumed by the registrar, the wildcard matchers, the feature gate
and the access service. Values are read from ``NEO_ACCESS_*`` environment
variables (or a ``.env`` file) and can always be overridden by passing an
explicit ``AccessSettings`` instance into a component.
"""
from typing import Optional
from functools import lru_cache
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    CacheDefaults,
    CacheStore,
    DEFAULT_GUARD,
    MissingFeatureBehavior,
    WildcardDefaults,
    WildcardDialect,
)


class AccessSettings(BaseSettings):
    """Settings for the access control layer."""

    model_config = SettingsConfigDict(
        env_prefix="NEO_ACCESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Guards
    default_guard: str = Field(default=DEFAULT_GUARD, min_length=1, description="Guard used when none is given")

    # Cache Configuration
    cache_store: CacheStore = Field(default=CacheStore.MEMORY, description="External cache backend")
    cache_key_prefix: str = Field(default=CacheDefaults.KEY_PREFIX, min_length=1, description="Cache key prefix")
    cache_ttl_seconds: int = Field(default=CacheDefaults.TTL_SECONDS, ge=0, description="Cache TTL, 0 disables the external cache")
    cache_max_entries: int = Field(default=CacheDefaults.MEMORY_MAX_ENTRIES, ge=1, description="Max in-memory cache entries")
    redis_url: Optional[str] = Field(default=None, description="Redis URL for the redis cache store")

    # Wildcard Configuration
    wildcards_enabled: bool = Field(default=False, description="Enable wildcard permission matching")
    wildcard_dialect: WildcardDialect = Field(default=WildcardDialect.COLON, description="Wildcard dialect")
    wildcard_token: str = Field(default=WildcardDefaults.TOKEN, description="Wildcard token")
    part_delimiter: str = Field(default=WildcardDefaults.PART_DELIMITER, description="Colon dialect part delimiter")
    subpart_delimiter: str = Field(default=WildcardDefaults.SUBPART_DELIMITER, description="Colon dialect subpart delimiter")
    dot_delimiter: str = Field(default=WildcardDefaults.DOT_DELIMITER, description="Dot dialect delimiter")
    pattern_cache_size: int = Field(default=WildcardDefaults.PATTERN_CACHE_SIZE, ge=2, description="Max compiled patterns")

    # Capabilities
    capabilities_enabled: bool = Field(default=False, description="Enable capability groupings")
    capabilities_direct_assignment: bool = Field(default=False, description="Allow capabilities on subjects")

    # Context (multi-tenancy)
    context_enabled: bool = Field(default=False, description="Enable context-scoped grants")
    context_global_fallback: bool = Field(default=True, description="Context checks also see global grants")

    # Feature flags
    features_enabled: bool = Field(default=False, description="Gate availability by feature flags")
    feature_on_missing_resolver: MissingFeatureBehavior = Field(
        default=MissingFeatureBehavior.DENY,
        description="Behaviour when no feature resolver is configured"
    )

    # Audit logging
    audit_enabled: bool = Field(default=False, description="Send authorization events to the audit logger")
    audit_log_checks: bool = Field(default=False, description="Audit every permission, role and capability check")
    audit_log_changes: bool = Field(default=True, description="Audit grants and revocations on subjects")
    audit_log_denials: bool = Field(default=True, description="Audit failed checks and authorizations")

    @field_validator("wildcard_token", "part_delimiter", "subpart_delimiter", "dot_delimiter")
    @classmethod
    def validate_single_character(cls, v: str) -> str:
        """Reserved characters must be exactly one character long."""
        if len(v) != 1:
            raise ValueError(f"Expected a single character, got: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_reserved_characters(self) -> "AccessSettings":
        """Delimiters must not collide with the wildcard token or each other."""
        if self.wildcard_token in (self.part_delimiter, self.subpart_delimiter, self.dot_delimiter):
            raise ValueError("Delimiters must differ from the wildcard token")
        if self.part_delimiter == self.subpart_delimiter:
            raise ValueError("Part and subpart delimiters must differ")
        return self

    @property
    def cache_enabled(self) -> bool:
        """Whether the registrar should use an external cache at all."""
        return self.cache_store != CacheStore.NONE and self.cache_ttl_seconds > 0

    @property
    def direct_capabilities_enabled(self) -> bool:
        """Direct capability assignment needs both capability flags."""
        return self.capabilities_enabled and self.capabilities_direct_assignment

    def get_cache_config(self) -> dict:
        """Get the cache related settings as a dictionary."""
        return {
            "store": self.cache_store.value,
            "key_prefix": self.cache_key_prefix,
            "ttl_seconds": self.cache_ttl_seconds,
            "max_entries": self.cache_max_entries,
            "redis_url": self.redis_url,
        }


@lru_cache()
def get_settings() -> AccessSettings:
    """Get the process-wide settings instance."""
    return AccessSettings()
