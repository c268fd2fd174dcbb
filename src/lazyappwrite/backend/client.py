"""Appwrite SDK client construction."""

import logging

from appwrite.client import Client

from lazyappwrite.config import Config

logger = logging.getLogger(__name__)


def build_client(config: Config, *, with_key: bool = True) -> Client:
    """Build an SDK client from config.

    The API key is only attached for server-side (admin) clients.
    """
    client = Client().set_endpoint(config.endpoint).set_project(config.project_id)
    if with_key and config.api_key:
        client.set_key(config.api_key)
    if config.self_signed:
        logger.warning("Accepting self-signed certificates for %s", config.endpoint)
        client.set_self_signed(True)
    return client
