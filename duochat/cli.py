"""
DuoChat - Command Line
Mode selection. Problems with the arguments are reported in the chat log, not fatal.
"""

import argparse
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from duochat import __version__
from duochat.chat.message import Message
from duochat.config.settings import DEBUG_LOG_FILE, HOST, PORT

MODE_TOKENS = {'server': 'server', 'client': 'client'}


@dataclass
class Options:
    mode: str = 'client'            # 'server', 'client' or 'idle'
    host: str = HOST
    port: int = PORT
    debug_log: Optional[str] = None
    notices: List[Message] = field(default_factory=list)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='duochat', allow_abbrev=False,
        description="One-to-one terminal chat. Run 'duochat server' on one machine "
                    "and 'duochat -ip <address>' on the other.")
    parser.add_argument('-s', '--server', action='store_true', help="listen for one peer")
    parser.add_argument('-ip', '--ip', dest='address', nargs='?', const='', default=None,
                        help="address of the peer to dial")
    parser.add_argument('-p', '--port', type=int, default=PORT, help=f"TCP port (default {PORT})")
    parser.add_argument('--debug', nargs='?', const=DEBUG_LOG_FILE, default=None, metavar='FILE',
                        help=f"write a debug log (default file {DEBUG_LOG_FILE})")
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Options:
    args, extra = build_parser().parse_known_args(argv)
    options = Options(port=args.port, debug_log=args.debug)

    mode = None
    for token in extra:
        if token.lower() in MODE_TOKENS and mode is None:
            mode = MODE_TOKENS[token.lower()]
        else:
            options.notices.append(
                Message.system(f'Unrecognized parameter "{token.lower()}"!', 'WARNING'))

    if args.server:
        mode = 'server'
    elif args.address is not None:
        if args.address:
            mode = 'client'
            options.host = args.address
        else:
            options.notices.append(Message.system("No address specified!", 'ERROR'))
            mode = 'idle'

    options.mode = mode or 'client'
    return options
