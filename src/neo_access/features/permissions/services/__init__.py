"""Permission services.

``AccessService`` depends on the registry feature, which itself depends on
the resolver, so it is imported from ``.access_service`` directly.
"""

from .hierarchy_resolver import RoleHierarchyResolver

__all__ = [
    "RoleHierarchyResolver",
]
