from __future__ import annotations

import logging
from typing import Iterable, List

import requests
from curl_cffi import requests as curl_requests

from .config import BASE_URL

logger = logging.getLogger("author_crawler")


def load_proxy_list(source: str, limit: int = 100, timeout: int = 20) -> List[str]:
    """Read proxy endpoints, one per line, from a file path or an http(s) URL.

    Blank lines and ``#`` comments are skipped; duplicates keep first position.
    """
    if source.startswith(("http://", "https://")):
        resp = requests.get(source, timeout=timeout)
        resp.raise_for_status()
        lines = resp.text.splitlines()
    else:
        with open(source, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()

    endpoints: List[str] = []
    for line in lines:
        endpoint = line.strip()
        if not endpoint or endpoint.startswith("#"):
            continue
        if "://" not in endpoint:
            endpoint = f"http://{endpoint}"
        if endpoint in endpoints:
            continue
        endpoints.append(endpoint)
        if len(endpoints) >= limit:
            break
    if not endpoints:
        raise ValueError(f"No proxy endpoints found in {source}")
    return endpoints


def check_proxy_health(endpoint: str, target: str = BASE_URL, timeout: int = 15) -> bool:
    """Probe the target origin through the proxy with a browser TLS fingerprint."""
    session = curl_requests.Session()
    try:
        response = session.get(
            target,
            proxies={"http": endpoint, "https": endpoint},
            impersonate="chrome120",
            timeout=timeout,
        )
    except Exception as exc:  # noqa: BLE001
        logger.info("Proxy %s failed health probe: %s", endpoint, type(exc).__name__)
        return False
    finally:
        session.close()
    healthy = 200 <= int(response.status_code) < 400
    if not healthy:
        logger.info("Proxy %s answered HTTP %s", endpoint, response.status_code)
    return healthy


def filter_healthy(endpoints: Iterable[str], target: str = BASE_URL, timeout: int = 15) -> List[str]:
    healthy = [e for e in endpoints if check_proxy_health(e, target=target, timeout=timeout)]
    logger.info("%d proxies passed the health probe", len(healthy))
    return healthy
