#!/usr/bin/env python3
"""
CBC padding oracle attack - command line

Usage:
  python3 -m vaudenay attack [--hex HEX] [--tcp HOST:PORT | --url URL] [--workers N] [--unpad] [-v]
  python3 -m vaudenay serve [--host H] [--port P] [--key HEX]
  python3 -m vaudenay demo [--message TEXT] [-v]
"""

import argparse
import sys

from tqdm import tqdm

from vaudenay.attack import decrypt, decrypt_parallel, strip_padding
from vaudenay.errors import PaddingOracleError
from vaudenay.oracle import BLOCK_SIZE, LocalOracle
from vaudenay.server import SERVER_HOST, SERVER_PORT, create_app, run
from vaudenay.transport import DEFAULT_TIMEOUT, HttpOracle, TcpOracle

DEFAULT_HOST = "128.8.130.16"
DEFAULT_PORT = 49101
DEFAULT_CHALLENGE = (
    "9F0B13944841A832B2421B9EAF6D9836813EC9D944A5C8347A7CA69AA34D8DC0"
    "DF70E343C4000A2AE35874CE75E64C31"
)
DEMO_MESSAGE = "Long Secret Message"


def parse_target(value):
    """HOST:PORT -> (host, port)"""
    host, sep, port = value.rpartition(':')
    if not sep or not host or not port.isdigit():
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    return host, int(port)


def block_progress(blocks):
    return tqdm(blocks, desc="Blocks", unit="blk")


def run_attack(oracle_factory, ciphertext, workers, verbose):
    opened = []

    def tracked():
        oracle = oracle_factory()
        opened.append(oracle)
        return oracle

    if workers > 1:
        if verbose:
            print("[-] --verbose has no effect with --workers > 1")
        plaintext = decrypt_parallel(tracked, ciphertext, workers)
    else:
        with tracked() as oracle:
            plaintext = decrypt(oracle, ciphertext, verbose=verbose, progress=block_progress)
    print(f"[*] {sum(o.queries for o in opened)} oracle queries")
    return plaintext


def cmd_attack(args):
    try:
        ciphertext = bytes.fromhex(args.hex)
    except ValueError as e:
        print(f"[!] Invalid hex ciphertext: {e}")
        return 1

    if args.url:
        print(f"[*] Padding oracle at {args.url}")
        factory = lambda: HttpOracle(args.url, timeout=args.timeout)
    else:
        host, port = args.tcp
        print(f"[*] Padding oracle at {host}:{port}")
        factory = lambda: TcpOracle(host, port, timeout=args.timeout)

    num_blocks = len(ciphertext) // BLOCK_SIZE
    print(f"[*] Ciphertext: {len(ciphertext)} bytes ({num_blocks} blocks, IV included)")

    try:
        plaintext = run_attack(factory, ciphertext, args.workers, args.verbose)
        if args.unpad:
            plaintext = strip_padding(plaintext)
    except PaddingOracleError as e:
        print(f"\n[!] Attack failed: {e}")
        return 1
    except ValueError as e:
        print(f"[!] Padding removal failed ({e})")
        return 1

    print(f"[+] Result: {plaintext!r}")
    return 0


def cmd_serve(args):
    try:
        key = bytes.fromhex(args.key) if args.key else None
        app = create_app(key)
    except ValueError as e:
        print(f"[!] Invalid key: {e}")
        return 1
    run(app, args.host, args.port)
    return 0


def cmd_demo(args):
    oracle = LocalOracle()
    ciphertext = oracle.encrypt(args.message.encode())
    print(f"[*] Key: {oracle.key.hex()}")
    print(f"[*] Ciphertext: {ciphertext.hex()}")

    try:
        plaintext = strip_padding(decrypt(oracle, ciphertext, verbose=args.verbose))
    except PaddingOracleError as e:
        print(f"\n[!] Attack failed: {e}")
        return 1

    print(f"[+] Recovered after {oracle.queries} queries: {plaintext!r}")
    print("Match ?", plaintext == args.message.encode())
    return 0


def build_parser():
    parser = argparse.ArgumentParser(prog="vaudenay", description="CBC padding oracle attack")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("attack", help="decrypt a ciphertext through a remote oracle")
    p.add_argument("--hex", default=DEFAULT_CHALLENGE, help="IV || ciphertext, hex encoded")
    target = p.add_mutually_exclusive_group()
    target.add_argument("--tcp", type=parse_target, default=(DEFAULT_HOST, DEFAULT_PORT),
                        metavar="HOST:PORT", help="raw TCP oracle (default: %(default)s)")
    target.add_argument("--url", help="HTTP oracle base url, e.g. http://localhost:5000")
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="seconds per query")
    p.add_argument("-w", "--workers", type=int, default=1, help="attack blocks in parallel")
    p.add_argument("--unpad", action="store_true", help="strip PKCS#7 padding from the result")
    p.add_argument("-v", "--verbose", action="store_true")
    p.set_defaults(func=cmd_attack)

    p = sub.add_parser("serve", help="run the vulnerable Flask oracle")
    p.add_argument("--host", default=SERVER_HOST)
    p.add_argument("--port", type=int, default=SERVER_PORT)
    p.add_argument("--key", help="AES key, hex encoded (random if omitted)")
    p.set_defaults(func=cmd_serve)

    p = sub.add_parser("demo", help="attack an in-process oracle")
    p.add_argument("-m", "--message", default=DEMO_MESSAGE)
    p.add_argument("-v", "--verbose", action="store_true")
    p.set_defaults(func=cmd_demo)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
