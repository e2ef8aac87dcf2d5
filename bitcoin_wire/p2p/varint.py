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

from .errors import TruncatedInput

MAX_VARINT = 0xFFFFFFFFFFFFFFFF

# marker byte -> (prefix length, struct format of the value that follows)
_WIDE_FORMATS = {
    0xFD: (3, "<H"),
    0xFE: (5, "<I"),
    0xFF: (9, "<Q"),
}


def decode_varint(data: bytes | bytearray | memoryview, offset: int = 0) -> tuple[int, int]:
    """Decode the compact size integer starting at ``offset``.

    Returns ``(value, prefix_length)``. The prefix length is determined by the
    first byte alone (1, 3, 5 or 9). Non-minimal encodings are accepted.
    """
    if offset >= len(data):
        raise TruncatedInput(needed=1, available=0, offset=offset)
    size = data[offset]
    # 1-byte value
    if size < 0xFD:
        return size, 1

    prefix_length, fmt = _WIDE_FORMATS[size]
    available = len(data) - offset
    if available < prefix_length:
        raise TruncatedInput(needed=prefix_length, available=available, offset=offset)
    (value,) = struct.unpack_from(fmt, data, offset + 1)
    return value, prefix_length


def encode_varint(n: int) -> bytes:
    """Encode varint."""
    if n < 0 or n > MAX_VARINT:
        raise ValueError(f"varint out of range: {n}")
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", n)
    if n <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", n)
    return b"\xff" + struct.pack("<Q", n)


def varint_size(n: int) -> int:
    """Number of bytes ``encode_varint(n)`` produces."""
    if n < 0xFD:
        return 1
    if n <= 0xFFFF:
        return 3
    if n <= 0xFFFFFFFF:
        return 5
    return 9
