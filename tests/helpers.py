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

from bitcoin_wire.p2p.builder import (
    build_message,
    encode_address,
    serialize_alert,
    serialize_block,
    serialize_transaction,
    serialize_version,
)
from bitcoin_wire.p2p.messages import (
    AlertMessage,
    Block,
    NetworkAddress,
    OutPoint,
    Transaction,
    TxIn,
    TxOut,
    VersionMessage,
)

PING_NONCE_BYTES = bytes.fromhex("0102030405060708")

# version=1, no inputs, one output of value 0 with an empty script, lock_time=0
MINIMAL_TX_PAYLOAD = bytes.fromhex("01000000" "00" "01" "0000000000000000" "00" "00000000")


def ping_pdu() -> bytes:
    return build_message("ping", PING_NONCE_BYTES)


def sample_version() -> VersionMessage:
    return VersionMessage(
        version=70016,
        services=0x409,
        timestamp=1_700_000_000,
        addr_recv=NetworkAddress(services=1, address=encode_address("127.0.0.1"), port=8333),
        addr_from=NetworkAddress(services=0x409, address=encode_address("2001:db8::1"), port=18333),
        nonce=0x1122334455667788,
        user_agent="/Satoshi:27.0/",
        start_height=840_000,
    )


def version_pdu() -> bytes:
    return build_message("version", serialize_version(sample_version()))


def sample_tx(n_outputs: int = 1, script_size: int = 25) -> Transaction:
    return Transaction(
        version=2,
        inputs=[
            TxIn(
                previous_output=OutPoint(hash=bytes(range(32)), index=n_outputs),
                script=b"\x00" * 107,
                sequence=0xFFFFFFFD,
            )
        ],
        outputs=[TxOut(value=1000 * (i + 1), script=b"\x76" * script_size) for i in range(n_outputs)],
        lock_time=840_000,
    )


def coinbase_tx() -> Transaction:
    return Transaction(
        version=1,
        inputs=[TxIn(previous_output=OutPoint(b"\x00" * 32, 0xFFFFFFFF), script=b"\x03\x40\xd1\x0c", sequence=0)],
        outputs=[
            TxOut(value=312_500_000, script=b"\x00\x14" + b"\xab" * 20),
            TxOut(value=0, script=b"\x6a\x05hello"),
        ],
        lock_time=0,
    )


def tx_pdu() -> bytes:
    return build_message("tx", serialize_transaction(sample_tx()))


def sample_block() -> Block:
    return Block(
        version=0x20000000,
        prev_block=b"\x11" * 32,
        merkle_root=b"\x22" * 32,
        timestamp=1_700_000_000,
        bits=0x17034219,
        nonce=0xDEADBEEF,
        transactions=[coinbase_tx(), sample_tx(n_outputs=1), sample_tx(n_outputs=3, script_size=300)],
    )


def block_pdu() -> bytes:
    return build_message("block", serialize_block(sample_block()))


def sample_alert() -> AlertMessage:
    """An alert whose length fields are filled in by :func:`alert_payload`."""
    return AlertMessage(
        payload_length=0,
        version=1,
        relay_until=1_500_000_000,
        expiration=1_600_000_000,
        id=1010,
        cancel=1009,
        cancel_set=[1001, 1002],
        min_ver=10000,
        max_ver=61000,
        sub_ver_set=["/Satoshi:0.8.0/"],
        priority=100,
        comment="",
        status_bar="URGENT: upgrade required",
        reserved="",
        signature=b"\x30\x45" + b"\x01" * 69,
        consumed_length=0,
    )


def alert_payload(declared_length: int | None = None) -> bytes:
    return serialize_alert(sample_alert(), declared_length=declared_length)


def stream() -> bytes:
    """A few messages back to back, as one direction of a connection carries them."""
    return version_pdu() + build_message("verack", b"") + ping_pdu() + tx_pdu() + block_pdu()
