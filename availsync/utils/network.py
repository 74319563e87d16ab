"""
Network utilities - HTTP client factories shared by the source adapters
"""
import httpx
import aiohttp
import logging

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def create_aiohttp_session(**kwargs) -> aiohttp.ClientSession:
    """
    Create an aiohttp ClientSession.

    Args:
        **kwargs: Additional arguments for ClientSession

    Returns:
        Configured aiohttp.ClientSession
    """
    kwargs.setdefault("timeout", aiohttp.ClientTimeout(total=DEFAULT_TIMEOUT))
    return aiohttp.ClientSession(**kwargs)


def create_httpx_client(**kwargs) -> httpx.AsyncClient:
    """
    Create an httpx AsyncClient.

    Args:
        **kwargs: Additional arguments for AsyncClient

    Returns:
        Configured httpx.AsyncClient
    """
    kwargs.setdefault("timeout", DEFAULT_TIMEOUT)
    return httpx.AsyncClient(**kwargs)
