"""
Integrations Package

Backend collaborators: the REST client and the in-memory reference backend.
"""

from aquatrack.integrations.backend_client import (
    BackendClient,
    BackendRejectedError,
    BackendUnavailableError,
    SessionExpiredError,
)
from aquatrack.integrations.memory_backend import (
    InMemoryBackend,
    demo_viewers,
    seed_demo_data,
)

__all__ = [
    'BackendClient',
    'BackendRejectedError',
    'BackendUnavailableError',
    'SessionExpiredError',
    'InMemoryBackend',
    'demo_viewers',
    'seed_demo_data',
]
