"""Client facade -- one method per exchange endpoint, with local validation."""

from buda.client.authenticated import AuthenticatedClient
from buda.client.public import PublicClient

__all__ = ["AuthenticatedClient", "PublicClient"]
