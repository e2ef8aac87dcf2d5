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
from collections.abc import Iterable

from .networks import KNOWN_MAGICS, Network

MAGIC_LENGTH = 4


def classify(data: bytes | bytearray | memoryview, extra_magics: Iterable[int] = ()) -> Network | int | None:
    """Decide from the first bytes of a stream whether it speaks this protocol.

    Returns the matching :class:`Network`, the matching extra magic (as int)
    or ``None``.
    """
    if len(data) < MAGIC_LENGTH:
        return None
    (magic,) = struct.unpack_from("<I", data, 0)
    if magic in KNOWN_MAGICS:
        return Network(magic)
    if magic in set(extra_magics):
        return magic
    return None


def looks_like_bitcoin(data: bytes | bytearray | memoryview, extra_magics: Iterable[int] = ()) -> bool:
    """Looks like bitcoin."""
    return classify(data, extra_magics=extra_magics) is not None
