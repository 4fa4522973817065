"""Feature modules of neo-access.

Each feature is organised as entities, services, repositories and adapters.
Import from the feature packages directly.
"""
