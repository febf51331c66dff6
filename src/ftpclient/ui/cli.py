"""
Command-line interface for FTP client
One operation per invocation: ls, mkdir, rmdir, rm, cp, mv
"""

import argparse
import logging
import sys

from .. import __version__
from ..core.client import Session
from ..core.config import ClientConfig
from ..core.copymove import CopyMoveCoordinator
from ..core.endpoint import Endpoint
from ..core.errors import DeleteAfterCopyError, FTPError

logger = logging.getLogger("ftpclient.cli")

URL_HELP = "ftp://[user[:password]@]host[:port][/path]"


def cmd_ls(args, config):
    with Session(Endpoint.from_url(args.url), config) as session:
        listing = session.list()
    sys.stdout.write(listing.decode(config.encoding, errors='replace'))
    sys.stdout.flush()
    return 0


def cmd_mkdir(args, config):
    with Session(Endpoint.from_url(args.url), config) as session:
        session.mkdir()
    return 0


def cmd_rmdir(args, config):
    with Session(Endpoint.from_url(args.url), config) as session:
        session.rmdir()
    return 0


def cmd_rm(args, config):
    with Session(Endpoint.from_url(args.url), config) as session:
        session.delete()
    return 0


def cmd_cp(args, config):
    CopyMoveCoordinator(config).copy(args.source, args.destination)
    return 0


def cmd_mv(args, config):
    CopyMoveCoordinator(config).move(args.source, args.destination)
    return 0


def build_parser():
    """Build the argument parser"""
    parser = argparse.ArgumentParser(prog='ftpclient', description='Passive-mode FTP client')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show the control connection exchange')
    parser.add_argument('--timeout', type=float, default=None, help='Seconds to wait on any socket operation')
    parser.add_argument('--pasv-use-control-host', action='store_true',
                        help='Connect data channels to the control host instead of the PASV address')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    sub = parser.add_subparsers(dest='cmd', required=True)

    ls = sub.add_parser('ls', help='List files in a directory')
    ls.add_argument('url', help=URL_HELP)
    ls.set_defaults(func=cmd_ls)

    mkdir = sub.add_parser('mkdir', help='Create a directory')
    mkdir.add_argument('url', help=URL_HELP)
    mkdir.set_defaults(func=cmd_mkdir)

    rmdir = sub.add_parser('rmdir', help='Remove a directory')
    rmdir.add_argument('url', help=URL_HELP)
    rmdir.set_defaults(func=cmd_rmdir)

    rm = sub.add_parser('rm', help='Remove a file')
    rm.add_argument('url', help=URL_HELP)
    rm.set_defaults(func=cmd_rm)

    for name, func, text in (('cp', cmd_cp, 'Copy a file from source to destination'),
                             ('mv', cmd_mv, 'Move a file from source to destination')):
        p = sub.add_parser(name, help=text)
        p.add_argument('source', help=f'Local path or {URL_HELP}')
        p.add_argument('destination', help=f'Local path or {URL_HELP}')
        p.set_defaults(func=func)

    return parser


def build_config(args):
    """Translate parsed arguments into a ClientConfig"""
    options = {'use_control_host': args.pasv_use_control_host}
    if args.timeout is not None:
        options['timeout'] = args.timeout
    return ClientConfig(**options)


def setup_logging(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        stream=sys.stderr,
    )


def main(argv=None):
    """
    Run one command

    Returns:
        int: Process exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = build_config(args)
        return args.func(args, config)
    except DeleteAfterCopyError as e:
        logger.error("Move incomplete: %s", e)
        return 1
    except FTPError as e:
        logger.error("%s failed: %s", args.cmd, e)
        return 1
    except OSError as e:
        logger.error("%s failed: %s", args.cmd, e)
        return 1
    except KeyboardInterrupt:
        print("\n^C", file=sys.stderr)
        return 130
