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
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from . import decoders
from .errors import DecodeError, TruncatedInput, UnknownCommand
from .fields import ExpertInfo, FieldNode, Severity
from .header import COMMAND_LENGTH, HEADER_LENGTH, MessageHeader, parse_header
from .messages import Message
from .reader import PayloadReader

logger = logging.getLogger(__name__)


@enum.unique
class MessageKind(enum.Enum):
    VERSION = "version"
    ADDR = "addr"
    INV = "inv"
    GETDATA = "getdata"
    NOTFOUND = "notfound"
    GETBLOCKS = "getblocks"
    GETHEADERS = "getheaders"
    TX = "tx"
    BLOCK = "block"
    PING = "ping"
    PONG = "pong"
    REJECT = "reject"
    ALERT = "alert"
    # messages with no payload
    VERACK = "verack"
    GETADDR = "getaddr"
    MEMPOOL = "mempool"
    # recognized, payload not decoded
    HEADERS = "headers"
    CHECKORDER = "checkorder"
    SUBMITORDER = "submitorder"
    REPLY = "reply"
    FILTERLOAD = "filterload"
    FILTERADD = "filteradd"
    FILTERCLEAR = "filterclear"
    MERKLEBLOCK = "merkleblock"

    UNKNOWN = ""

    @property
    def command_bytes(self) -> bytes:
        """The exact 12 byte command field of this kind."""
        return self.value.encode("ascii").ljust(COMMAND_LENGTH, b"\x00")

    @classmethod
    def lookup(cls, command: bytes, strict: bool = False) -> MessageKind:
        """Exact, case-sensitive match of the full 12 byte command field."""
        kind = _KIND_BY_COMMAND.get(bytes(command))
        if kind is None:
            if strict:
                raise UnknownCommand(bytes(command))
            return cls.UNKNOWN
        return kind


_KIND_BY_COMMAND: dict[bytes, MessageKind] = {
    kind.command_bytes: kind for kind in MessageKind if kind is not MessageKind.UNKNOWN
}

Decoder = Callable[[PayloadReader, str], Message]

DISPATCH_TABLE: dict[MessageKind, Decoder] = {
    MessageKind.VERSION: decoders.decode_version,
    MessageKind.ADDR: decoders.decode_addr,
    MessageKind.INV: decoders.decode_inventory,
    MessageKind.GETDATA: decoders.decode_inventory,
    MessageKind.NOTFOUND: decoders.decode_inventory,
    MessageKind.GETBLOCKS: decoders.decode_block_locator,
    MessageKind.GETHEADERS: decoders.decode_block_locator,
    MessageKind.TX: decoders.decode_tx,
    MessageKind.BLOCK: decoders.decode_block,
    MessageKind.PING: decoders.decode_ping,
    MessageKind.PONG: decoders.decode_pong,
    MessageKind.REJECT: decoders.decode_reject,
    MessageKind.ALERT: decoders.decode_alert,
    MessageKind.VERACK: decoders.decode_empty,
    MessageKind.GETADDR: decoders.decode_empty,
    MessageKind.MEMPOOL: decoders.decode_empty,
    MessageKind.HEADERS: decoders.decode_empty,
    MessageKind.CHECKORDER: decoders.decode_empty,
    MessageKind.SUBMITORDER: decoders.decode_empty,
    MessageKind.REPLY: decoders.decode_empty,
    MessageKind.FILTERLOAD: decoders.decode_empty,
    MessageKind.FILTERADD: decoders.decode_empty,
    MessageKind.FILTERCLEAR: decoders.decode_empty,
    MessageKind.MERKLEBLOCK: decoders.decode_empty,
}

_undispatched = set(MessageKind) - set(DISPATCH_TABLE) - {MessageKind.UNKNOWN}
if _undispatched:
    raise RuntimeError(f"No decoder registered for {sorted(kind.value for kind in _undispatched)}")


@dataclass
class DecodedMessage:
    """Everything known about one PDU after decoding."""

    kind: MessageKind
    tree: FieldNode
    header: MessageHeader | None = None
    message: Message | None = None
    expert_infos: list[ExpertInfo] = field(default_factory=list)
    error: DecodeError | None = None
    consumed: int = 0  # payload bytes the decoder read

    @property
    def ok(self) -> bool:
        """Ok."""
        return self.error is None and self.kind is not MessageKind.UNKNOWN

    @property
    def command(self) -> str:
        """Command."""
        if self.header is None:
            return ""
        return self.header.command_name


def get_decoder(command: bytes) -> Decoder:
    """Decoder for a raw command field; raises :class:`UnknownCommand`."""
    return DISPATCH_TABLE[MessageKind.lookup(command, strict=True)]


def decode_payload(
    kind: MessageKind, payload: bytes | bytearray | memoryview, base: int = 0, strict: bool = False
) -> tuple[Message, PayloadReader]:
    """Run the decoder of ``kind`` on a payload-only buffer."""
    if kind is MessageKind.UNKNOWN:
        raise UnknownCommand(b"")
    reader = PayloadReader(payload, base=base, strict=strict)
    message = DISPATCH_TABLE[kind](reader, kind.value)
    return message, reader


def _error_info(error: DecodeError) -> ExpertInfo:
    """Error info."""
    return ExpertInfo(Severity.ERROR, str(error), offset=error.offset, length=error.length)


def decode_pdu(pdu: bytes | bytearray | memoryview, base: int = 0, strict: bool = False) -> DecodedMessage:
    """Decode one complete (or, without reassembly, possibly short) PDU.

    Decode failures never propagate; they end up in ``error`` and as an
    ``ERROR`` expert info covering the offending bytes.
    """
    tree = FieldNode("bitcoin", "Bitcoin protocol", base, len(pdu))
    try:
        header = parse_header(pdu)
    except TruncatedInput as e:
        logger.debug(f"<- short header ({len(pdu)} bytes)")
        e.offset += base
        return DecodedMessage(kind=MessageKind.UNKNOWN, tree=tree, expert_infos=[_error_info(e)], error=e)

    tree = header.field_tree(base)
    tree.length = min(header.pdu_length, len(pdu))
    kind = MessageKind.lookup(header.command)
    decoded = DecodedMessage(kind=kind, tree=tree, header=header)

    if kind is MessageKind.UNKNOWN:
        logger.debug(f"<- unknown command {header.command!r}")
        decoded.expert_infos.append(
            ExpertInfo(Severity.NOTE, "Unknown command", offset=base + 4, length=COMMAND_LENGTH)
        )
        return decoded

    logger.debug(f"<- {kind.value} ({header.length} bytes)")
    payload = memoryview(pdu)[HEADER_LENGTH : HEADER_LENGTH + header.length]
    reader = PayloadReader(payload, base=base + HEADER_LENGTH, root=tree, strict=strict)
    try:
        decoded.message = DISPATCH_TABLE[kind](reader, kind.value)
    except DecodeError as e:
        logger.debug(f"Error decoding {kind.value}: {e}")
        decoded.error = e
        decoded.expert_infos.append(_error_info(e))
    decoded.expert_infos[:0] = reader.expert_infos
    decoded.consumed = reader.offset
    return decoded
