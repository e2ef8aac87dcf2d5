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

import struct
from dataclasses import dataclass

from .errors import TruncatedInput
from .fields import FieldNode
from .networks import Network, network_for_magic

HEADER_LENGTH = 4 + 12 + 4 + 4
COMMAND_LENGTH = 12
_HEADER_STRUCT = struct.Struct("<I12sI4s")


@dataclass
class MessageHeader:
    magic: int  # first 4 bytes read little-endian
    command: bytes  # raw 12 byte, NUL padded
    length: int
    checksum: bytes  # extracted, never verified

    @property
    def command_name(self) -> str:
        """Command without the NUL padding."""
        return self.command.rstrip(b"\x00").decode("ascii", errors="replace")

    @property
    def network(self) -> Network | None:
        """Network."""
        return network_for_magic(self.magic)

    @property
    def pdu_length(self) -> int:
        """Pdu length."""
        return HEADER_LENGTH + self.length

    def field_tree(self, offset: int = 0) -> FieldNode:
        """Field nodes of the four header fields."""
        network = self.network
        node = FieldNode("bitcoin", "Bitcoin protocol", offset, HEADER_LENGTH)
        node.add(FieldNode("bitcoin.magic", "Packet magic", offset, 4, network or self.magic))
        node.add(FieldNode("bitcoin.command", "Command name", offset + 4, 12, self.command_name))
        node.add(FieldNode("bitcoin.length", "Payload Length", offset + 16, 4, self.length))
        node.add(FieldNode("bitcoin.checksum", "Payload checksum", offset + 20, 4, self.checksum))
        return node


def parse_header(data: bytes | bytearray | memoryview, offset: int = 0) -> MessageHeader:
    """Parse the 24 byte message header at ``offset``."""
    available = len(data) - offset
    if available < HEADER_LENGTH:
        raise TruncatedInput(needed=HEADER_LENGTH, available=max(available, 0), offset=offset)
    magic, command, length, checksum = _HEADER_STRUCT.unpack_from(data, offset)
    return MessageHeader(magic=magic, command=command, length=length, checksum=checksum)


def pdu_length(data: bytes | bytearray | memoryview, offset: int = 0) -> int:
    """Total length of the PDU starting at ``offset``: header plus declared payload length."""
    available = len(data) - offset
    if available < HEADER_LENGTH:
        raise TruncatedInput(needed=HEADER_LENGTH, available=max(available, 0), offset=offset)
    (length,) = struct.unpack_from("<I", data, offset + 16)
    return HEADER_LENGTH + length
