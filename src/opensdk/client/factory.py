from __future__ import annotations

from typing import Mapping, Optional

from opensdk.catalog.catalog import ResourceCatalog
from opensdk.client.resource import ResourceClient, Transport, create_resource_client
from opensdk.core.config import ClientConfig


def create_api(
    catalogs: Mapping[str, ResourceCatalog],
    transport: Transport,
    config: Optional[ClientConfig] = None,
) -> dict[str, ResourceClient]:
    """One resource client per object key, all sharing the transport and config."""
    config = config or ClientConfig()
    return {
        key: create_resource_client(key, catalogs[key], transport, config)
        for key in sorted(catalogs)
    }
