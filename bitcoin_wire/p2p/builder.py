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

import hashlib
import ipaddress
import struct

from .header import COMMAND_LENGTH
from .messages import (
    AddrMessage,
    AlertMessage,
    Block,
    BlockLocatorMessage,
    InventoryItem,
    NetworkAddress,
    PingMessage,
    PongMessage,
    RejectMessage,
    Transaction,
    VersionMessage,
)
from .networks import Network
from .varint import encode_varint


def double_sha256(b: bytes) -> bytes:
    """Double sha256."""
    return hashlib.sha256(hashlib.sha256(b).digest()).digest()


def encode_address(host: str) -> bytes:
    """Convert *host* to the 16-byte 'network address' field.

    IPv4 literal -> ::ffff:IPv4, IPv6 literal -> raw 16-byte IPv6
    """
    try:
        ip = ipaddress.ip_address(host)
    except ValueError as exc:
        raise ValueError(f"unrecognised host format: {host!r}") from exc

    if ip.version == 4:
        return b"\x00" * 10 + b"\xff\xff" + ip.packed  # ::ffff:v4
    return ip.packed


def build_message(
    command: str,
    payload: bytes,
    magic: Network | int = Network.MAIN,
    checksum: bytes | None = None,
) -> bytes:
    """Frame ``payload`` with the 24 byte header."""
    if len(command) > COMMAND_LENGTH:
        raise ValueError(f"command too long: {command!r}")
    magic_value = magic.value if isinstance(magic, Network) else magic
    header = (
        struct.pack("<L", magic_value)
        + struct.pack("12s", command.encode())
        + struct.pack("<L", len(payload))
        + (checksum if checksum is not None else double_sha256(payload)[:4])
    )
    return header + payload


def serialize_var_bytes(data: bytes) -> bytes:
    """Serialize var bytes."""
    return encode_varint(len(data)) + data


def serialize_var_str(text: str) -> bytes:
    """Serialize var str."""
    return serialize_var_bytes(text.encode("ascii"))


def serialize_network_address(addr: NetworkAddress, with_timestamp: bool = False) -> bytes:
    """Serialize network address."""
    out = b""
    if with_timestamp:
        out += struct.pack("<I", addr.timestamp or 0)
    out += struct.pack("<Q", addr.services)
    out += addr.address
    out += struct.pack(">H", addr.port)
    return out


def serialize_version(msg: VersionMessage) -> bytes:
    """Serialize version."""
    payload = struct.pack("<iQq", msg.version, msg.services, msg.timestamp)
    payload += serialize_network_address(msg.addr_recv)
    payload += serialize_network_address(msg.addr_from)
    payload += struct.pack("<Q", msg.nonce)
    payload += serialize_var_str(msg.user_agent)
    payload += struct.pack("<i", msg.start_height)
    return payload


def serialize_addr(msg: AddrMessage) -> bytes:
    """Serialize addr."""
    out = encode_varint(len(msg.addresses))
    for addr in msg.addresses:
        out += serialize_network_address(addr, with_timestamp=True)
    return out


def serialize_inv(items: list[InventoryItem]) -> bytes:
    """
    [ varint(count) ][ entries... ]
    where each entry is:
    <I   : 4-byte little-endian unsigned int (InventoryType)
    32s : 32-byte hash in wire order >
    """
    out = bytearray()
    out += encode_varint(len(items))
    for item in items:
        if len(item.hash) != 32:
            raise ValueError(f"expected 32-byte hash, got {len(item.hash)} bytes")
        out += struct.pack("<I32s", item.type, item.hash)
    return bytes(out)


def serialize_block_locator(msg: BlockLocatorMessage) -> bytes:
    """Serialize block locator."""
    out = struct.pack("<I", msg.version) + encode_varint(len(msg.locator_hashes))
    out += b"".join(msg.locator_hashes)
    out += msg.stop_hash
    return out


def serialize_transaction(tx: Transaction) -> bytes:
    """Serialize transaction."""
    out = struct.pack("<I", tx.version)
    out += encode_varint(len(tx.inputs))
    for txin in tx.inputs:
        out += txin.previous_output.hash + struct.pack("<I", txin.previous_output.index)
        out += serialize_var_bytes(txin.script)
        out += struct.pack("<I", txin.sequence)
    out += encode_varint(len(tx.outputs))
    for txout in tx.outputs:
        out += struct.pack("<Q", txout.value) + serialize_var_bytes(txout.script)
    out += struct.pack("<I", tx.lock_time)
    return out


def serialize_block(block: Block) -> bytes:
    """Serialize block."""
    out = struct.pack("<I", block.version) + block.prev_block + block.merkle_root
    out += struct.pack("<III", block.timestamp, block.bits, block.nonce)
    out += encode_varint(len(block.transactions))
    out += b"".join(serialize_transaction(tx) for tx in block.transactions)
    return out


def serialize_ping(msg: PingMessage | PongMessage) -> bytes:
    """Serialize ping or pong."""
    return struct.pack("<Q", msg.nonce)


def serialize_reject(msg: RejectMessage) -> bytes:
    """Serialize reject."""
    return (
        serialize_var_str(msg.message)
        + struct.pack("<B", msg.code)
        + serialize_var_str(msg.reason)
        + msg.data
    )


def serialize_alert_payload(msg: AlertMessage) -> bytes:
    """The signed region of an alert, without its length prefix."""
    out = struct.pack("<IqqII", msg.version, msg.relay_until, msg.expiration, msg.id, msg.cancel)
    out += encode_varint(len(msg.cancel_set))
    out += b"".join(struct.pack("<I", c) for c in msg.cancel_set)
    out += struct.pack("<II", msg.min_ver, msg.max_ver)
    out += encode_varint(len(msg.sub_ver_set))
    out += b"".join(serialize_var_str(s) for s in msg.sub_ver_set)
    out += struct.pack("<I", msg.priority)
    out += serialize_var_str(msg.comment) + serialize_var_str(msg.status_bar) + serialize_var_str(msg.reserved)
    return out


def serialize_alert(msg: AlertMessage, declared_length: int | None = None) -> bytes:
    """Serialize alert; ``declared_length`` overrides the signed-region length prefix."""
    signed = serialize_alert_payload(msg)
    length = len(signed) if declared_length is None else declared_length
    return encode_varint(length) + signed + serialize_var_bytes(msg.signature)

