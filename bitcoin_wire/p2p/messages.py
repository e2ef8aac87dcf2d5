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

import enum
import ipaddress
from dataclasses import dataclass, field
from typing import Union


# Inventory type constants, a superset covering BIP 339, 152 and 157
class InventoryType(enum.Enum):
    ERROR = 0  # Any data of with this number may be ignored
    MSG_TX = 1  # A transaction message (inv points to a transaction)
    MSG_BLOCK = 2  # A full block message (inv points to a serialized block)
    MSG_FILTERED_BLOCK = 3  # A filtered (merkle) block; nodes ask for only relevant transactions
    MSG_CMPCT_BLOCK = 4  # A compact block, containing short IDs for transactions to save bandwidth
    # BIP144: witness types use the high "witness flag" bit (1 << 30)
    MSG_WITNESS_TX = 0x40000001
    MSG_WITNESS_BLOCK = 0x40000002


class RejectCode(enum.IntEnum):
    REJECT_MALFORMED = 0x01
    REJECT_INVALID = 0x10
    REJECT_OBSOLETE = 0x11
    REJECT_DUPLICATE = 0x12
    REJECT_NONSTANDARD = 0x40
    REJECT_DUST = 0x41
    REJECT_INSUFFICIENTFEE = 0x42
    REJECT_CHECKPOINT = 0x43


class ServiceFlags(enum.IntFlag):
    NODE_NETWORK = 1
    NODE_GETUTXO = 1 << 1
    NODE_BLOOM = 1 << 2
    NODE_WITNESS = 1 << 3
    NODE_COMPACT_FILTERS = 1 << 6
    NODE_NETWORK_LIMITED = 1 << 10


_IPV4_MAPPED_PREFIX = b"\x00" * 10 + b"\xff\xff"


def display_hash(h: bytes) -> str:
    """Hashes travel little-endian; humans read them big-endian."""
    return h[::-1].hex()


@dataclass
class NetworkAddress:
    services: int
    address: bytes  # 16 bytes, IPv4 in IPv4-mapped IPv6 form
    port: int
    timestamp: int | None = None  # only present in addr entries

    @property
    def ip(self) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
        """Ip."""
        ip6 = ipaddress.IPv6Address(self.address)
        return ip6.ipv4_mapped or ip6

    @property
    def host(self) -> str:
        """Host."""
        return str(self.ip)

    @property
    def is_ipv4(self) -> bool:
        """Is ipv4."""
        return self.address.startswith(_IPV4_MAPPED_PREFIX)

    @property
    def service_flags(self) -> ServiceFlags:
        """Known service bits; unknown bits are dropped."""
        known = 0
        for flag in ServiceFlags:
            known |= flag.value
        return ServiceFlags(self.services & known)

    @property
    def node_network(self) -> bool:
        """Node network."""
        return bool(self.services & ServiceFlags.NODE_NETWORK)

    def __str__(self) -> str:
        """Str."""
        if self.is_ipv4:
            return f"{self.host}:{self.port}"
        return f"[{self.host}]:{self.port}"


@dataclass
class InventoryItem:
    type: int
    hash: bytes

    @property
    def inventory_type(self) -> InventoryType | None:
        """Inventory type."""
        try:
            return InventoryType(self.type)
        except ValueError:
            return None

    @property
    def hash_hex(self) -> str:
        """Hash as big-endian hex, the form block explorers show."""
        return display_hash(self.hash)


class Inventory(list[InventoryItem]):
    pass


@dataclass
class OutPoint:
    hash: bytes
    index: int

    def __str__(self) -> str:
        """Str."""
        return f"{display_hash(self.hash)}:{self.index}"


@dataclass
class TxIn:
    previous_output: OutPoint
    script: bytes
    sequence: int


@dataclass
class TxOut:
    value: int
    script: bytes


@dataclass
class Transaction:
    version: int
    inputs: list[TxIn] = field(default_factory=list)
    outputs: list[TxOut] = field(default_factory=list)
    lock_time: int = 0
    index: int | None = None  # position inside a block, 1-based

    @property
    def is_coinbase(self) -> bool:
        """Is coinbase."""
        return (
            len(self.inputs) == 1
            and self.inputs[0].previous_output.hash == b"\x00" * 32
            and self.inputs[0].previous_output.index == 0xFFFFFFFF
        )

    def total_output_value(self) -> int:
        """Total output value."""
        return sum(out.value for out in self.outputs)


@dataclass
class Block:
    version: int
    prev_block: bytes
    merkle_root: bytes
    timestamp: int
    bits: int
    nonce: int
    transactions: list[Transaction] = field(default_factory=list)


@dataclass
class VersionMessage:
    version: int
    services: int
    timestamp: int
    addr_recv: NetworkAddress
    addr_from: NetworkAddress
    nonce: int
    user_agent: str
    start_height: int


@dataclass
class AddrMessage:
    addresses: list[NetworkAddress] = field(default_factory=list)


@dataclass
class InventoryMessage:
    """Shared by ``inv``, ``getdata`` and ``notfound``; ``label`` tells them apart."""

    label: str
    items: Inventory = field(default_factory=Inventory)


@dataclass
class BlockLocatorMessage:
    """Shared by ``getblocks`` and ``getheaders``."""

    label: str
    version: int
    locator_hashes: list[bytes] = field(default_factory=list)
    stop_hash: bytes = b"\x00" * 32


@dataclass
class PingMessage:
    nonce: int


@dataclass
class PongMessage:
    nonce: int


@dataclass
class RejectMessage:
    message: str
    code: int
    reason: str
    data: bytes

    @property
    def reject_code(self) -> RejectCode | None:
        """Reject code."""
        try:
            return RejectCode(self.code)
        except ValueError:
            return None


@dataclass
class AlertMessage:
    payload_length: int  # declared length of the signed region
    version: int
    relay_until: int
    expiration: int
    id: int
    cancel: int
    cancel_set: list[int]
    min_ver: int
    max_ver: int
    sub_ver_set: list[str]
    priority: int
    comment: str
    status_bar: str
    reserved: str
    signature: bytes
    consumed_length: int  # bytes the signed region fields actually occupied

    @property
    def length_mismatch(self) -> bool:
        """Length mismatch."""
        return self.payload_length != self.consumed_length


@dataclass
class EmptyMessage:
    """Payload-less or recognized-but-unparsed command."""

    command: str


Message = Union[
    VersionMessage,
    AddrMessage,
    InventoryMessage,
    BlockLocatorMessage,
    Transaction,
    Block,
    PingMessage,
    PongMessage,
    RejectMessage,
    AlertMessage,
    EmptyMessage,
]
