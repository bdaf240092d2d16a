import argparse
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from typing import BinaryIO, Optional, TextIO

from errors import FetchError, InputError
from exchanger import exchange
from logger import setup_logging
from url_parser import resolve_plan

PROXY_ENV_VAR = 'http_proxy'

logger = logging.getLogger(__name__)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fetch one URL over plain HTTP and dump the raw response")
    parser.add_argument('url', nargs='?', help='URL to fetch; prompted for when omitted')
    parser.add_argument('-v', '--verbose', action='store_true', help='show debug output')
    parser.add_argument('-q', '--quiet', action='store_true', help='only show warnings and errors')
    parser.add_argument('--log-file', help='append progress output to this file instead of stderr')
    return parser

def read_url(stdin: TextIO, prompt_stream: TextIO) -> str:
    logger.info('[Step 3] Asking for URL...')
    prompt_stream.write('URL: ')
    prompt_stream.flush()

    # like scanf("%s"): blank lines are skipped, the first token wins
    for line in iter(stdin.readline, ''):
        tokens = line.split()
        if tokens:
            return tokens[0]
    raise InputError('Failed to read URL', -1)

def run(url: str, proxy_config: Optional[str], sink: BinaryIO) -> int:
    target, _, plan = resolve_plan(url, proxy_config)
    if not plan.connect_host:
        raise InputError(f'No host to connect to for URL: {url!r}')
    logger.info(f'Connect target: {plan.connect_host}:{plan.connect_port} (proxied={plan.proxied})')
    return exchange(plan, target, sink)

def main(argv: Optional[Sequence[str]] = None,
         environ: Optional[Mapping[str, str]] = None,
         stdin: Optional[TextIO] = None,
         stdout: Optional[BinaryIO] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    setup_logging(level, args.log_file)

    environ = os.environ if environ is None else environ
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout.buffer if stdout is None else stdout

    try:
        url = args.url if args.url else read_url(stdin, sys.stderr)
        run(url, environ.get(PROXY_ENV_VAR), stdout)
    except FetchError as e:
        logger.debug('fetch failed', exc_info=True)
        print(f'ERROR: {e}', file=sys.stderr)
        return e.exit_code

    logger.info('[Step 10] Done. Exiting.')
    return 0

if __name__ == '__main__':
    sys.exit(main())
