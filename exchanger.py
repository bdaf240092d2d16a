import socket
import logging
from contextlib import closing
from collections.abc import Iterator
from typing import BinaryIO, Optional

from errors import ResolutionError, ConnectionError, SendError, ReceiveError
from url_parser import Target, ConnectPlan, HTTP_PREFIX, DEFAULT_PORT

CRLF = '\r\n'
RECEIVE_CHUNK_SIZE = 4094

logger = logging.getLogger(__name__)

def _errno(exc: BaseException) -> Optional[int]:
    return getattr(exc, 'errno', None)

def resolve_address(host: str) -> str:
    """Return the dotted IPv4 address for ``host``.

    A numeric address is used as is; anything else goes through a name
    lookup. A failed lookup is fatal.
    """
    logger.info(f"[Step 5] Resolving '{host}' ...")
    try:
        return socket.inet_ntoa(socket.inet_aton(host))
    except (OSError, ValueError):
        logger.debug(f"inet_aton failed; calling gethostbyname for '{host}'...")

    try:
        return socket.gethostbyname(host)
    except (OSError, TypeError, ValueError) as exc:
        raise ResolutionError(f"Cannot resolve '{host}'", _errno(exc)) from exc

def connect(address: str, port: int) -> socket.socket:
    logger.info('[Step 6] Creating socket...')
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError as exc:
        raise ConnectionError('Cannot create socket', _errno(exc)) from exc
    logger.debug(f'Socket created (fd={sock.fileno()})')

    logger.info(f'[Step 7] Connecting to {address}:{port} ...')
    try:
        sock.connect((address, port))
    except (OSError, OverflowError) as exc:
        sock.close()
        raise ConnectionError(f'Cannot connect to {address}:{port}', _errno(exc)) from exc
    logger.debug(f'Connected to {address}:{port}')
    return sock

def format_request(target: Target, proxied: bool) -> bytes:
    # a proxy needs the absolute URL to know where to forward
    if proxied:
        request_line = f'GET {HTTP_PREFIX}{target.host}/{target.path} HTTP/1.1'
        host_header = target.host
    else:
        request_line = f'GET /{target.path} HTTP/1.1'
        host_header = f'{target.host}:{DEFAULT_PORT}'

    request = (
        f'{request_line}{CRLF}'
        f'Host: {host_header}{CRLF}'
        f'Connection: close{CRLF}'
        f'{CRLF}'
    )
    # surrogateescape gives back the raw bytes argv or stdin could not decode
    return request.encode('utf-8', errors='surrogateescape')

def send(session: socket.socket, data: bytes) -> None:
    try:
        session.sendall(data)
    except OSError as exc:
        raise SendError('Cannot send data', _errno(exc)) from exc

def receive_all(session: socket.socket, chunk_size: int = RECEIVE_CHUNK_SIZE) -> Iterator[bytes]:
    while True:
        try:
            chunk = session.recv(chunk_size)
        except OSError as exc:
            raise ReceiveError('Error receiving data', _errno(exc)) from exc
        if not chunk:
            return
        yield chunk

def exchange(plan: ConnectPlan, target: Target, sink: BinaryIO) -> int:
    """Run one GET against ``plan`` and copy the raw response into ``sink``.

    Returns the number of response bytes written. The socket is closed on
    every path out of here, including errors.
    """
    address = resolve_address(plan.connect_host)
    logger.debug(f"Resolved '{plan.connect_host}' → {address}:{plan.connect_port}")

    request = format_request(target, plan.proxied)

    total = 0
    with closing(connect(address, plan.connect_port)) as session:
        logger.info('[Step 8] Preparing HTTP GET request...')
        logger.debug(f">>> Request >>>\n{request.decode('utf-8', errors='replace')}")
        send(session, request)
        logger.info('Request sent successfully.')

        logger.info('[Step 9] Receiving HTTP response...')
        logger.info('---- Start of response ----')
        for chunk in receive_all(session):
            sink.write(chunk)
            sink.flush()
            total += len(chunk)
        logger.info(f'---- End of response ({total} bytes) ----')
        logger.info('[Step 10] Closing socket and cleaning up.')

    return total
