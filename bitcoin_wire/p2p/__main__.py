#
# Bitcoin Wire
# Copyright (C) 2024 Andreas Griffin
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of version 3 of the GNU General Public License as
# published by the Free Software Foundation.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see https://www.gnu.org/licenses/gpl-3.0.html
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from bitcoin_wire.config import DissectorConfig
from bitcoin_wire.logging_setup import setup_logging

from .builder import build_message, encode_address, serialize_ping, serialize_transaction, serialize_version
from .dissector import BitcoinDissector
from .dispatcher import DecodedMessage
from .heuristic import MAGIC_LENGTH
from .messages import NetworkAddress, OutPoint, PingMessage, Transaction, TxIn, TxOut, VersionMessage
from .tools import format_tree, message_table, transaction_table

logger = logging.getLogger(__name__)


def demo_stream() -> bytes:
    """A short mainnet conversation: version, verack, ping, tx."""
    version = VersionMessage(
        version=70016,
        services=1,
        timestamp=int(time.time()),
        addr_recv=NetworkAddress(services=1, address=encode_address("127.0.0.1"), port=8333),
        addr_from=NetworkAddress(services=1, address=encode_address("::1"), port=8333),
        nonce=0x1122334455667788,
        user_agent="/Satoshi:27.0/",
        start_height=0,
    )
    tx = Transaction(
        version=1,
        inputs=[TxIn(OutPoint(b"\x11" * 32, 0), script=b"\x51", sequence=0xFFFFFFFF)],
        outputs=[TxOut(value=50_000, script=b"\x6a\x05hello")],
        lock_time=0,
    )
    return (
        build_message("version", serialize_version(version))
        + build_message("verack", b"")
        + build_message("ping", serialize_ping(PingMessage(nonce=0x0807060504030201)))
        + build_message("tx", serialize_transaction(tx))
    )


def non_negative_int(value: str) -> int:
    """Argparse type for sizes; 0 means no limit."""
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {n}")
    return n


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse args."""
    parser = argparse.ArgumentParser(description="Decode a captured Bitcoin P2P byte stream")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("file", nargs="?", type=Path, help="raw stream bytes of one direction of a connection")
    source.add_argument("--hex", help="stream bytes as hex string")
    source.add_argument("--demo", action="store_true", help="decode a built-in sample stream")
    parser.add_argument(
        "--chunk-size", type=non_negative_int, default=0, help="feed the stream in chunks of this size"
    )
    parser.add_argument("--no-desegment", action="store_true", help="do not reassemble across chunks")
    parser.add_argument("--config", type=Path, default=None, help="config file")
    parser.add_argument("--tree", action="store_true", help="print the field tree of every message")
    parser.add_argument("--log-dir", type=Path, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def read_source(args: argparse.Namespace) -> bytes:
    """Read source."""
    if args.demo:
        return demo_stream()
    if args.hex is not None:
        return bytes.fromhex(args.hex)
    return args.file.read_bytes()


def main(argv: list[str] | None = None) -> int:
    """Main."""
    args = parse_args(argv)
    setup_logging(log_dir=args.log_dir, console_level=logging.DEBUG if args.verbose else logging.WARNING)

    config = DissectorConfig.exists_or_create(args.config)
    if args.no_desegment:
        config.desegment = False

    data = read_source(args)
    dissector = BitcoinDissector(config=config, debug=args.verbose)
    messages: list[DecodedMessage] = []
    dissector.signal_message.connect(messages.append)
    dissector.signal_decode_error.connect(messages.append)
    dissector.signal_unknown_command.connect(lambda cmd, payload: logger.info(f"Unknown command {cmd!r}"))

    conn = "stream"
    chunk_size = args.chunk_size or len(data) or 1
    chunks = [data[i : i + chunk_size] for i in range(0, len(data), chunk_size)]
    # the heuristic needs the whole magic, so short leading chunks are offered together
    first = b""
    while chunks and len(first) < MAGIC_LENGTH:
        first += chunks.pop(0)
    if first and not dissector.heuristic(conn, first):
        print("Stream does not start with a known network magic", file=sys.stderr)
        return 1
    for chunk in chunks:
        dissector.dissect(conn, chunk)

    state = dissector.state(conn)
    if state is not None and state.reassembler.buffered:
        print(f"{state.reassembler.buffered} trailing bytes, need {state.reassembler.needed} more")

    print(message_table(messages))
    if args.tree:
        for decoded in messages:
            print(format_tree(decoded.tree))
            if isinstance(decoded.message, Transaction):
                print(transaction_table(decoded.message, op_return_limit=40))

    return 0 if all(m.error is None for m in messages) else 2


if __name__ == "__main__":
    sys.exit(main())
