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
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .errors import LengthOverflow, TruncatedInput
from .fields import ExpertInfo, FieldNode
from .varint import decode_varint

# Largest offset a declared script/string length may move the cursor to
MAX_OFFSET = 2**31 - 1


class PayloadReader:
    """Bounds-checked cursor over a message payload.

    Every read is recorded as a :class:`FieldNode` in the field tree below
    ``root``. ``base`` is the absolute position of ``data[0]`` in the PDU, so
    recorded byte ranges (and error offsets) refer to the original buffer.
    The underlying buffer is never modified.
    """

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        offset: int = 0,
        base: int = 0,
        root: FieldNode | None = None,
        strict: bool = False,
    ) -> None:
        """Initialize instance."""
        self.data = data
        self.offset = offset
        self.base = base
        self.strict = strict
        self.expert_infos: list[ExpertInfo] = []
        self.root = root or FieldNode(key="bitcoin.payload", label="Payload", offset=base, length=len(data))
        self._stack: list[FieldNode] = [self.root]

    @property
    def remaining(self) -> int:
        """Remaining."""
        return len(self.data) - self.offset

    @property
    def absolute_offset(self) -> int:
        """Absolute offset."""
        return self.base + self.offset

    @property
    def current(self) -> FieldNode:
        """The node new fields are attached to."""
        return self._stack[-1]

    def at_end(self) -> bool:
        """At end."""
        return self.remaining <= 0

    def require(self, n: int) -> None:
        """Raise :class:`TruncatedInput` unless ``n`` more bytes are available."""
        if n > self.remaining:
            raise TruncatedInput(needed=n, available=self.remaining, offset=self.absolute_offset)

    def check_length(self, length: int) -> None:
        """Reject declared lengths that would overflow the offset range."""
        if self.absolute_offset + length > MAX_OFFSET:
            raise LengthOverflow(offset=self.absolute_offset, length=length, limit=MAX_OFFSET)

    def add_field(self, key: str, label: str, offset: int, length: int, value: Any = None) -> FieldNode:
        """Record a field at a payload-relative offset."""
        return self.current.add(
            FieldNode(key=key, label=label, offset=self.base + offset, length=length, value=value)
        )

    @contextmanager
    def subtree(self, key: str, label: str, value: Any = None) -> Iterator[FieldNode]:
        """Group all fields read inside the block under one node.

        The node's length is fixed up when the block exits, also on errors, so
        partially decoded structures still cover the bytes they consumed.
        """
        node = self.add_field(key, label, self.offset, 0, value)
        start = self.offset
        self._stack.append(node)
        try:
            yield node
        finally:
            self._stack.pop()
            node.length = self.offset - start

    # ------------------------------------------------------------------
    # fixed width fields
    # ------------------------------------------------------------------

    def _unpack(self, fmt: str, key: str, label: str) -> Any:
        """Unpack."""
        size = struct.calcsize(fmt)
        self.require(size)
        (value,) = struct.unpack_from(fmt, self.data, self.offset)
        self.add_field(key, label, self.offset, size, value)
        self.offset += size
        return value

    def u8(self, key: str, label: str) -> int:
        """U8."""
        return self._unpack("<B", key, label)

    def u16(self, key: str, label: str) -> int:
        """U16."""
        return self._unpack("<H", key, label)

    def u16_be(self, key: str, label: str) -> int:
        """U16 be."""
        return self._unpack(">H", key, label)

    def u32(self, key: str, label: str) -> int:
        """U32."""
        return self._unpack("<I", key, label)

    def i32(self, key: str, label: str) -> int:
        """I32."""
        return self._unpack("<i", key, label)

    def u64(self, key: str, label: str) -> int:
        """U64."""
        return self._unpack("<Q", key, label)

    def i64(self, key: str, label: str) -> int:
        """I64."""
        return self._unpack("<q", key, label)

    def raw(self, n: int, key: str, label: str) -> bytes:
        """Read ``n`` raw bytes."""
        self.check_length(n)
        self.require(n)
        value = bytes(self.data[self.offset : self.offset + n])
        self.add_field(key, label, self.offset, n, value)
        self.offset += n
        return value

    def hash32(self, key: str, label: str) -> bytes:
        """A 32 byte hash, in wire byte order."""
        return self.raw(32, key, label)

    # ------------------------------------------------------------------
    # variable length fields
    # ------------------------------------------------------------------

    def varint(self, key: str, label: str) -> int:
        """Read a compact size integer, recording the whole prefix as the field range."""
        try:
            value, prefix_length = decode_varint(self.data, self.offset)
        except TruncatedInput as e:
            raise TruncatedInput(needed=e.needed, available=e.available, offset=self.absolute_offset) from e
        self.add_field(key, label, self.offset, prefix_length, value)
        self.offset += prefix_length
        return value

    def var_bytes(self, key: str, label: str) -> bytes:
        """Varint length prefix followed by that many bytes."""
        length = self.varint(f"{key}.length", f"{label} length")
        return self.raw(length, key, label)

    def var_str(self, key: str, label: str) -> str:
        """Varint length prefixed ASCII string; undecodable bytes are replaced."""
        text = self.var_bytes(key, label).decode("ascii", errors="replace")
        self.current.children[-1].value = text
        return text
