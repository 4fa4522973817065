"""Factory for the configured wildcard dialect."""

import logging
from typing import Optional

from ...config.constants import WildcardDialect
from ...config.settings import AccessSettings, get_settings
from .entities.protocols import WildcardHandler
from .matchers import ColonWildcardMatcher, DotWildcardMatcher

logger = logging.getLogger(__name__)


def create_wildcard_handler(settings: Optional[AccessSettings] = None) -> WildcardHandler:
    """Create the wildcard handler for the configured dialect."""
    settings = settings or get_settings()

    if settings.wildcard_dialect == WildcardDialect.DOT:
        handler: WildcardHandler = DotWildcardMatcher(
            token=settings.wildcard_token,
            delimiter=settings.dot_delimiter,
            cache_size=settings.pattern_cache_size,
        )
    else:
        handler = ColonWildcardMatcher(
            token=settings.wildcard_token,
            part_delimiter=settings.part_delimiter,
            subpart_delimiter=settings.subpart_delimiter,
            cache_size=settings.pattern_cache_size,
        )

    logger.debug(f"Created {settings.wildcard_dialect.value} wildcard handler")
    return handler
