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

import logging

from .errors import DecodeError
from .fields import ExpertInfo, Severity
from .messages import (
    AddrMessage,
    AlertMessage,
    Block,
    BlockLocatorMessage,
    EmptyMessage,
    Inventory,
    InventoryItem,
    InventoryMessage,
    NetworkAddress,
    OutPoint,
    PingMessage,
    PongMessage,
    RejectMessage,
    Transaction,
    TxIn,
    TxOut,
    VersionMessage,
)
from .reader import PayloadReader

logger = logging.getLogger(__name__)


###############################################################################
# Shared sub-decoders
###############################################################################


def read_network_address(
    reader: PayloadReader, key: str, label: str, with_timestamp: bool = False
) -> NetworkAddress:
    """Services + 16 byte address + big-endian port, optionally preceded by a timestamp."""
    with reader.subtree(key, label) as node:
        timestamp = reader.u32(f"{key}.timestamp", "Address timestamp") if with_timestamp else None
        services = reader.u64(f"{key}.services", "Node services")
        address = reader.raw(16, f"{key}.address", "Node address")
        port = reader.u16_be(f"{key}.port", "Node port")
        net_addr = NetworkAddress(services=services, address=address, port=port, timestamp=timestamp)
        # show the readable host rather than the raw 16 bytes
        node.children[-2].value = net_addr.host
        node.value = str(net_addr)
    return net_addr


def read_inventory(reader: PayloadReader, label: str) -> Inventory:
    """The inventory vector list shared by inv, getdata and notfound."""
    items = Inventory()
    count = reader.varint(f"bitcoin.{label}.count", "Count")
    for _ in range(count):
        with reader.subtree(f"bitcoin.{label}.item", "Inventory vector") as node:
            inv_type = reader.u32(f"bitcoin.{label}.type", "Type")
            h = reader.hash32(f"bitcoin.{label}.hash", "Data hash")
            item = InventoryItem(type=inv_type, hash=h)
            node.value = item.inventory_type or inv_type
        items.append(item)
    return items


def read_transaction(reader: PayloadReader, index: int | None = None) -> Transaction:
    """Decode one transaction at the reader's cursor.

    Used for the ``tx`` message itself and for every transaction embedded in a
    ``block``; ``index`` is the 1-based position inside the block.
    """
    label = "Tx message" if index is None else f"Tx message [ {index:4d} ]"
    with reader.subtree("bitcoin.tx", label, value=index):
        version = reader.u32("bitcoin.tx.version", "Transaction version")

        # TxIn[]
        inputs: list[TxIn] = []
        in_count = reader.varint("bitcoin.tx.input_count", "Input Count")
        for _ in range(in_count):
            with reader.subtree("bitcoin.tx.in", "Transaction input"):
                with reader.subtree("bitcoin.tx.in.prev_output", "Previous output") as prev_node:
                    prev_hash = reader.hash32("bitcoin.tx.in.prev_output.hash", "Hash")
                    prev_index = reader.u32("bitcoin.tx.in.prev_output.index", "Index")
                    outpoint = OutPoint(hash=prev_hash, index=prev_index)
                    prev_node.value = str(outpoint)
                script = reader.var_bytes("bitcoin.tx.in.sig_script", "Signature script")
                sequence = reader.u32("bitcoin.tx.in.seq", "Sequence")
            inputs.append(TxIn(previous_output=outpoint, script=script, sequence=sequence))

        # TxOut[]
        outputs: list[TxOut] = []
        out_count = reader.varint("bitcoin.tx.output_count", "Output Count")
        for _ in range(out_count):
            with reader.subtree("bitcoin.tx.out", "Transaction output"):
                value = reader.u64("bitcoin.tx.out.value", "Value")
                script = reader.var_bytes("bitcoin.tx.out.script", "Script")
            outputs.append(TxOut(value=value, script=script))

        lock_time = reader.u32("bitcoin.tx.lock_time", "Block lock time or block ID")

    return Transaction(version=version, inputs=inputs, outputs=outputs, lock_time=lock_time, index=index)


def decode_transaction(
    data: bytes | bytearray | memoryview, offset: int = 0, index: int | None = None
) -> tuple[Transaction, int]:
    """Decode a transaction starting at ``offset``; returns it with the offset just past it."""
    reader = PayloadReader(data, offset=offset)
    tx = read_transaction(reader, index=index)
    return tx, reader.offset


###############################################################################
# Per-command decoders
###############################################################################


def decode_version(reader: PayloadReader, label: str = "version") -> VersionMessage:
    """Decode version."""
    with reader.subtree("bitcoin.version", "Version message"):
        version = reader.i32("bitcoin.version.version", "Protocol version")
        services = reader.u64("bitcoin.version.services", "Node services")
        timestamp = reader.i64("bitcoin.version.timestamp", "Node timestamp")
        addr_recv = read_network_address(
            reader, "bitcoin.version.addr_recv", "Address as seen by the emitting node"
        )
        addr_from = read_network_address(reader, "bitcoin.version.addr_from", "Address of emitting node")
        nonce = reader.u64("bitcoin.version.nonce", "Random nonce")
        user_agent = reader.var_str("bitcoin.version.user_agent", "User Agent string")
        start_height = reader.i32("bitcoin.version.start_height", "Block start height")
    return VersionMessage(
        version=version,
        services=services,
        timestamp=timestamp,
        addr_recv=addr_recv,
        addr_from=addr_from,
        nonce=nonce,
        user_agent=user_agent,
        start_height=start_height,
    )


def decode_addr(reader: PayloadReader, label: str = "addr") -> AddrMessage:
    """Decode addr."""
    addresses: list[NetworkAddress] = []
    with reader.subtree("bitcoin.addr", "Address message"):
        count = reader.varint("bitcoin.addr.count", "Count")
        for _ in range(count):
            addresses.append(
                read_network_address(reader, "bitcoin.addr.address", "Address", with_timestamp=True)
            )
    return AddrMessage(addresses=addresses)


def decode_inventory(reader: PayloadReader, label: str = "inv") -> InventoryMessage:
    """Decode inv, getdata and notfound; they only differ in ``label``."""
    with reader.subtree(f"bitcoin.{label}", f"{label.capitalize()} message"):
        items = read_inventory(reader, label)
    return InventoryMessage(label=label, items=items)


def decode_block_locator(reader: PayloadReader, label: str = "getblocks") -> BlockLocatorMessage:
    """Decode getblocks and getheaders."""
    with reader.subtree(f"bitcoin.{label}", f"{label.capitalize()} message"):
        version = reader.u32(f"bitcoin.{label}.version", "Protocol version")
        count = reader.varint(f"bitcoin.{label}.count", "Count")
        hashes = [reader.hash32(f"bitcoin.{label}.hash_start", "Starting hash") for _ in range(count)]
        stop_hash = reader.hash32(f"bitcoin.{label}.hash_stop", "Stopping hash")
    return BlockLocatorMessage(label=label, version=version, locator_hashes=hashes, stop_hash=stop_hash)


def decode_tx(reader: PayloadReader, label: str = "tx") -> Transaction:
    """Decode tx."""
    return read_transaction(reader)


def decode_block(reader: PayloadReader, label: str = "block") -> Block:
    """Decode block.

    The embedded transactions are decoded back to back on the same cursor, each
    one starting where the previous one ended.
    """
    with reader.subtree("bitcoin.block", "Block message"):
        version = reader.u32("bitcoin.block.version", "Block version")
        prev_block = reader.hash32("bitcoin.block.prev_block", "Previous block")
        merkle_root = reader.hash32("bitcoin.block.merkle_root", "Merkle root")
        timestamp = reader.u32("bitcoin.block.timestamp", "Block timestamp")
        bits = reader.u32("bitcoin.block.bits", "Bits")
        nonce = reader.u32("bitcoin.block.nonce", "Nonce")
        count = reader.varint("bitcoin.block.num_transactions", "Number of transactions")
        transactions = [read_transaction(reader, index=i) for i in range(1, count + 1)]
    return Block(
        version=version,
        prev_block=prev_block,
        merkle_root=merkle_root,
        timestamp=timestamp,
        bits=bits,
        nonce=nonce,
        transactions=transactions,
    )


def decode_ping(reader: PayloadReader, label: str = "ping") -> PingMessage:
    """Decode ping."""
    with reader.subtree("bitcoin.ping", "Ping message"):
        nonce = reader.u64("bitcoin.ping.nonce", "Nonce")
    return PingMessage(nonce=nonce)


def decode_pong(reader: PayloadReader, label: str = "pong") -> PongMessage:
    """Decode pong."""
    with reader.subtree("bitcoin.pong", "Pong message"):
        nonce = reader.u64("bitcoin.pong.nonce", "Nonce")
    return PongMessage(nonce=nonce)


def decode_reject(reader: PayloadReader, label: str = "reject") -> RejectMessage:
    """Decode reject."""
    with reader.subtree("bitcoin.reject", "Reject message"):
        message = reader.var_str("bitcoin.reject.command", "Command")
        code = reader.u8("bitcoin.reject.code", "Code")
        reason = reader.var_str("bitcoin.reject.reason", "Reason")
        data = reader.hash32("bitcoin.reject.hash", "Data hash")
    reject = RejectMessage(message=message, code=code, reason=reason, data=data)
    if reject.reject_code is None:
        logger.debug(f"Unknown reject code {code:#04x}")
    return reject


def decode_alert(reader: PayloadReader, label: str = "alert") -> AlertMessage:
    """Decode alert.

    The signed region is decoded field by field. Its length prefix is only
    compared with the bytes actually consumed afterwards; a mismatch is a
    warning unless the reader is strict.
    """
    with reader.subtree("bitcoin.alert", "Alert message") as alert_node:
        with reader.subtree("bitcoin.alert.message", "Message") as message_node:
            payload_length = reader.varint("bitcoin.alert.message.length", "Length")
            start = reader.offset
            version = reader.u32("bitcoin.alert.message.version", "Version")
            relay_until = reader.i64("bitcoin.alert.message.relay_until", "Relay until")
            expiration = reader.i64("bitcoin.alert.message.expiration", "Expiration")
            alert_id = reader.u32("bitcoin.alert.message.id", "Id")
            cancel = reader.u32("bitcoin.alert.message.cancel", "Cancel")

            cancel_count = reader.varint("bitcoin.alert.message.cancel_set_count", "Cancel Set Count")
            cancel_set = [
                reader.u32("bitcoin.alert.message.cancel_set_item", "Cancel Set Item")
                for _ in range(cancel_count)
            ]
            min_ver = reader.u32("bitcoin.alert.message.min_version", "Min Version")
            max_ver = reader.u32("bitcoin.alert.message.max_version", "Max Version")

            sub_ver_count = reader.varint("bitcoin.alert.message.sub_ver_set_count", "SubVer Set Count")
            sub_ver_set = [
                reader.var_str("bitcoin.alert.message.sub_ver", "Subver") for _ in range(sub_ver_count)
            ]
            priority = reader.u32("bitcoin.alert.message.priority", "Priority")
            comment = reader.var_str("bitcoin.alert.message.comment", "Comment")
            status_bar = reader.var_str("bitcoin.alert.message.status_bar", "Status Bar")
            reserved = reader.var_str("bitcoin.alert.message.reserved", "Reserved")
            consumed_length = reader.offset - start

        if consumed_length != payload_length:
            message = (
                f"Alert message length prefix {payload_length} does not match "
                f"the {consumed_length} bytes of its fields"
            )
            if reader.strict:
                raise DecodeError(message, offset=message_node.offset, length=message_node.length)
            logger.debug(message)
            reader.expert_infos.append(
                ExpertInfo(Severity.WARN, message, offset=message_node.offset, length=message_node.length)
            )

        with reader.subtree("bitcoin.alert.signature", "Signature"):
            signature = reader.var_bytes("bitcoin.alert.signature.data", "Data")
        alert_node.value = alert_id

    return AlertMessage(
        payload_length=payload_length,
        version=version,
        relay_until=relay_until,
        expiration=expiration,
        id=alert_id,
        cancel=cancel,
        cancel_set=cancel_set,
        min_ver=min_ver,
        max_ver=max_ver,
        sub_ver_set=sub_ver_set,
        priority=priority,
        comment=comment,
        status_bar=status_bar,
        reserved=reserved,
        signature=signature,
        consumed_length=consumed_length,
    )


def decode_empty(reader: PayloadReader, label: str = "") -> EmptyMessage:
    """Payload-less or unparsed commands; nothing is asserted about the remaining bytes."""
    return EmptyMessage(command=label)
