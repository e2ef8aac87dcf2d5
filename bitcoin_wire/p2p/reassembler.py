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

from .header import HEADER_LENGTH, pdu_length

logger = logging.getLogger(__name__)


class ReassemblyState(enum.Enum):
    AWAITING_HEADER = enum.auto()
    AWAITING_PAYLOAD = enum.auto()
    MESSAGE_READY = enum.auto()


class StreamReassembler:
    """Buffers the transport segments of one connection and cuts them into PDUs.

    ``feed`` never blocks: it returns the PDUs that are complete and keeps the
    rest. ``needed`` says how many more bytes the pending PDU requires.

    With ``desegment=False`` nothing is carried over between deliveries. The
    complete PDUs of a delivery are still split off; a trailing partial PDU is
    handed on as-is, so its decoder fails with ``TruncatedInput``.
    """

    def __init__(self, desegment: bool = True) -> None:
        """Initialize instance."""
        self.desegment = desegment
        self._buffer = bytearray()
        self.state = ReassemblyState.AWAITING_HEADER
        self.declared_length: int | None = None

    @property
    def buffered(self) -> int:
        """Buffered."""
        return len(self._buffer)

    @property
    def needed(self) -> int:
        """Bytes still missing before the next PDU is complete."""
        if self.state is ReassemblyState.AWAITING_HEADER:
            return HEADER_LENGTH - len(self._buffer)
        if self.state is ReassemblyState.AWAITING_PAYLOAD and self.declared_length is not None:
            return HEADER_LENGTH + self.declared_length - len(self._buffer)
        return 0

    def reset(self) -> None:
        """Drop buffered bytes, e.g. when the connection goes away."""
        if self._buffer:
            logger.debug(f"Discarding {len(self._buffer)} buffered bytes")
        self._buffer.clear()
        self._set_awaiting_header()

    def _set_awaiting_header(self) -> None:
        """Set awaiting header."""
        self.state = ReassemblyState.AWAITING_HEADER
        self.declared_length = None

    def _advance(self) -> bytes | None:
        """Run the state machine once; return a PDU if one became complete."""
        if self.state is ReassemblyState.AWAITING_HEADER:
            if len(self._buffer) < HEADER_LENGTH:
                return None
            total = pdu_length(self._buffer)
            self.declared_length = total - HEADER_LENGTH
            self.state = ReassemblyState.AWAITING_PAYLOAD

        if self.state is ReassemblyState.AWAITING_PAYLOAD:
            assert self.declared_length is not None
            total = HEADER_LENGTH + self.declared_length
            if len(self._buffer) < total:
                return None
            self.state = ReassemblyState.MESSAGE_READY

        # MESSAGE_READY
        assert self.declared_length is not None
        total = HEADER_LENGTH + self.declared_length
        pdu = bytes(self._buffer[:total])
        del self._buffer[:total]
        self._set_awaiting_header()
        return pdu

    def feed(self, chunk: bytes) -> list[bytes]:
        """Append a transport segment and return every PDU completed by it."""
        self._buffer += chunk
        pdus: list[bytes] = []
        while (pdu := self._advance()) is not None:
            pdus.append(pdu)

        if not self.desegment and self._buffer:
            logger.debug(f"Desegmentation disabled, passing on {len(self._buffer)} trailing bytes")
            pdus.append(bytes(self._buffer))
            self._buffer.clear()
            self._set_awaiting_header()
        elif self._buffer:
            logger.debug(f"Need {self.needed} more bytes")
        return pdus
