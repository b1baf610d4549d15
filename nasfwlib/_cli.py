#! /usr/bin/env python3

from .commands import (
    build,
    info,
    split,
)
from .common import Signature
from .errors import (
    handle_errors,
    HELP_TEXT,
    MISSING_ARGUMENTS,
)
from .header import (
    DEFAULT_COMPAT_ID,
    DEFAULT_SUBCOMPAT_ID,
)
from . import __version__

import argparse
import logging
import json
import sys

from typing import (
    Any,
    Dict,
    IO,
    List,
    NoReturn,
    Optional,
)


def build_handler(args: argparse.Namespace) -> Dict[str, Any]:
    return build(
        args.kernel,
        args.initrd,
        args.output,
        product_id=args.product_id,
        custom_id=args.custom_id,
        model_id=args.model_id,
        defaults=args.defaults,
        compat_id=args.compat_id,
        subcompat_id=args.subcompat_id,
        signature=args.signature,
    )

def split_handler(args: argparse.Namespace) -> Dict[str, Any]:
    return split(args.image, kernel=args.kernel, initrd=args.initrd, defaults=args.defaults)

def info_handler(args: argparse.Namespace) -> Dict[str, Any]:
    return info(args.image)

class NASFWHelpFormatter(argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter):
    pass

class NASFWArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.formatter_class = NASFWHelpFormatter

    def print_usage(self, file: Optional[IO[str]] = None) -> None:
        if file is None:
            file = sys.stderr
        super().print_usage(file)

    def print_help(self, file: Optional[IO[str]] = None) -> None:
        if file is None:
            file = sys.stderr
        super().print_help(file)
        error = {'error': 'Help text requested', 'code': HELP_TEXT}
        print(json.dumps(error))

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        args = {'prog': self.prog, 'message': message}
        error = {'error': '%(prog)s: error: %(message)s' % args, 'code': MISSING_ARGUMENTS}
        print(json.dumps(error))
        self.exit(2)

def get_parser() -> NASFWArgumentParser:
    parser = NASFWArgumentParser(description='NAS Firmware Tool, version {}.\nBuild and split NAS firmware images. Responses are in JSON format.'.format(__version__))
    parser.add_argument('--debug', help='Print debug statements', action='store_true')
    parser.add_argument('--version', action='version', version='%(prog)s {}'.format(__version__))

    subparsers = parser.add_subparsers(description='Commands', dest='command')
    # work-around to make subparser required
    subparsers.required = True

    build_parser = subparsers.add_parser('build', help='Build a firmware image from a kernel, an initrd and an optional defaults archive')
    build_parser.add_argument('--kernel', '-k', help='The kernel bootloader image', required=True)
    build_parser.add_argument('--initrd', '-i', help='The initrd bootloader image', required=True)
    build_parser.add_argument('--defaults', '-d', help='The defaults archive to embed')
    build_parser.add_argument('--output', '-o', help='Where to write the firmware image', required=True)
    build_parser.add_argument('--product-id', '-p', help='The device product identifier', type=int, required=True)
    build_parser.add_argument('--custom-id', '-c', help='The OEM/custom identifier', type=int, required=True)
    build_parser.add_argument('--model-id', '-m', help='The device model identifier', type=int, required=True)
    build_parser.add_argument('--compat-id', help='The compatibility class', type=int, default=DEFAULT_COMPAT_ID)
    build_parser.add_argument('--subcompat-id', help='The compatibility subclass', type=int, default=DEFAULT_SUBCOMPAT_ID)
    build_parser.add_argument('--signature', '-s', help='The signature name ({}) or any 7 character signature'.format(', '.join(str(s) for s in Signature)), default=str(Signature.FRODOII))
    build_parser.set_defaults(func=build_handler)

    split_parser = subparsers.add_parser('split', help='Split a firmware image into its kernel, initrd and defaults archive')
    split_parser.add_argument('image', help='The firmware image to split')
    split_parser.add_argument('--kernel', '-k', help='Where to write the kernel')
    split_parser.add_argument('--initrd', '-i', help='Where to write the initrd')
    split_parser.add_argument('--defaults', '-d', help='Where to write the defaults archive')
    split_parser.set_defaults(func=split_handler)

    info_parser = subparsers.add_parser('info', help='Show the header and checksum results of a firmware image')
    info_parser.add_argument('image', help='The firmware image to describe')
    info_parser.set_defaults(func=info_handler)

    return parser

def process_commands(cli_args: List[str]) -> Any:
    parser = get_parser()
    args = parser.parse_args(cli_args)

    result: Dict[str, Any] = {}

    # Setup debug logging
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)

    # Do the commands
    with handle_errors(msg="{} failed:".format(args.command), result=result, debug=args.debug):
        result = args.func(args)

    return result

def main() -> None:
    result = process_commands(sys.argv[1:])
    print(json.dumps(result))
