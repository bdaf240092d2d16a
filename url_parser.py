from dataclasses import dataclass
from typing import Optional
import re
import logging

HTTP_PREFIX = 'http://'
DEFAULT_PORT = 80

# atoi-style: leading whitespace, optional '+', then digits; the rest is ignored
PORT_PATTERN = re.compile(r'\s*\+?([0-9]+)')

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Target:
    host: str
    path: str = ''

@dataclass(frozen=True)
class ProxyTarget:
    host: str
    port: int

@dataclass(frozen=True)
class ConnectPlan:
    connect_host: str
    connect_port: int
    proxied: bool

def strip_http_prefix(url: str) -> Optional[str]:
    if url.startswith(HTTP_PREFIX):
        return url[len(HTTP_PREFIX):]
    return None

def parse_target(url: str) -> Target:
    rest = strip_http_prefix(url)
    if rest is None:
        rest = url

    slash_idx = rest.find('/')
    if slash_idx >= 0:
        return Target(host=rest[0:slash_idx], path=rest[slash_idx+1:])
    else:
        return Target(host=rest)

def parse_port(port_value: str) -> Optional[int]:
    match = PORT_PATTERN.match(port_value)
    if not match:
        return None
    port = int(match.group(1))
    if port <= 0:
        return None
    return port

def parse_proxy(proxy_value: Optional[str]) -> Optional[ProxyTarget]:
    """Parse an ``http://<host>:<port>`` proxy setting.

    Anything that does not fully parse gives ``None``, which selects a
    direct connection. Only the first ':' after the scheme is considered
    and text trailing the port digits is ignored. An empty host is
    treated as no proxy.
    """
    if not proxy_value:
        return None

    rest = strip_http_prefix(proxy_value)
    if rest is None:
        return None

    colon_idx = rest.find(':')
    if colon_idx <= 0:
        return None

    port = parse_port(rest[colon_idx+1:])
    if port is None:
        return None

    return ProxyTarget(host=rest[0:colon_idx], port=port)

def build_plan(target: Target, proxy: Optional[ProxyTarget]) -> ConnectPlan:
    if proxy is not None:
        return ConnectPlan(connect_host=proxy.host, connect_port=proxy.port, proxied=True)
    return ConnectPlan(connect_host=target.host, connect_port=DEFAULT_PORT, proxied=False)

def resolve_plan(url: str, proxy_config: Optional[str]) -> tuple[Target, Optional[ProxyTarget], ConnectPlan]:
    logger.info('[Step 4] Parsing URL...')
    target = parse_target(url)
    logger.debug(f'Parsed Host: {target.host}')
    logger.debug(f'Parsed Site: {target.path}')

    proxy = parse_proxy(proxy_config)
    if proxy is not None:
        logger.debug(f'http_proxy detected → {proxy.host}:{proxy.port}')
    else:
        logger.debug('No valid http_proxy found → connecting directly')

    return target, proxy, build_plan(target, proxy)
