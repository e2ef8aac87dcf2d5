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
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import cast

from bitcoin_safe_lib.gui.qt.signal_tracker import SignalProtocol
from PyQt6.QtCore import QObject, pyqtSignal

from bitcoin_wire.config import DissectorConfig

from .dispatcher import DecodedMessage, MessageKind, decode_pdu
from .header import HEADER_LENGTH
from .heuristic import classify
from .networks import Network
from .reassembler import StreamReassembler

logger = logging.getLogger(__name__)


@dataclass
class ConnectionState:
    """Decode state owned by one connection."""

    reassembler: StreamReassembler
    network: Network | int | None = None
    messages: int = 0
    errors: int = 0
    unknown: int = 0
    commands: dict[str, int] = field(default_factory=dict)


class BitcoinDissector(QObject):
    """Decodes the byte streams of many connections and emits one signal per message.

    Connections are identified by any hashable key the host uses (e.g. a
    4-tuple). Each one owns its reassembler; nothing is shared between
    connections, and a failure on one message never stops the next one.
    """

    signal_message = cast("SignalProtocol[[DecodedMessage]]", pyqtSignal(object))
    signal_decode_error = cast("SignalProtocol[[DecodedMessage]]", pyqtSignal(object))
    signal_unknown_command = cast("SignalProtocol[[str, bytes]]", pyqtSignal(str, bytes))  # (command, raw_payload)
    signal_connection_classified = cast("SignalProtocol[[object, object]]", pyqtSignal(object, object))

    def __init__(
        self,
        config: DissectorConfig | None = None,
        debug: bool = False,
        parent: QObject | None = None,
    ) -> None:
        """Initialize instance."""
        super().__init__(parent)
        self.config = config or DissectorConfig()
        self._connections: dict[Hashable, ConnectionState] = {}

        if debug:
            for name, sig in self.__class__.__dict__.items():
                if isinstance(sig, pyqtSignal):
                    getattr(self, name).connect(lambda *a, n=name: logger.debug(f"{n} {a}"))

    # ------------------------------------------------------------------
    # Connection bookkeeping
    # ------------------------------------------------------------------

    def state(self, conn: Hashable) -> ConnectionState | None:
        """State."""
        return self._connections.get(conn)

    def is_bound(self, conn: Hashable) -> bool:
        """Is bound."""
        return conn in self._connections

    def connections(self) -> list[Hashable]:
        """Connections."""
        return list(self._connections)

    def _bind(self, conn: Hashable, network: Network | int | None) -> ConnectionState:
        """Bind."""
        state = self._connections.get(conn)
        if state is None:
            state = ConnectionState(reassembler=StreamReassembler(desegment=self.config.desegment))
            self._connections[conn] = state
            logger.debug(f"Bound {conn} ({network})")
        if network is not None and state.network is None:
            state.network = network
            self.signal_connection_classified.emit(conn, network)
        return state

    def close(self, conn: Hashable) -> None:
        """Forget a connection and any partially buffered message."""
        state = self._connections.pop(conn, None)
        if state is not None:
            state.reassembler.reset()
            logger.debug(f"Closed {conn} after {state.messages} messages")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def heuristic(self, conn: Hashable, data: bytes) -> bool:
        """Offer the first bytes of an unclassified stream.

        On a known magic the connection is bound to this dissector for its
        remaining lifetime and ``data`` is decoded. Otherwise nothing happens.
        """
        if self.is_bound(conn):
            self.dissect(conn, data)
            return True

        network = classify(data, extra_magics=self.config.extra_magics)
        if network is None:
            return False

        self._bind(conn, network)
        self.dissect(conn, data)
        return True

    def dissect(self, conn: Hashable, data: bytes) -> list[DecodedMessage]:
        """Decode one transport delivery of ``conn`` (binding it if needed)."""
        state = self._bind(conn, None)
        results: list[DecodedMessage] = []
        for pdu in state.reassembler.feed(data):
            decoded = decode_pdu(pdu, strict=self.config.strict_alert_length)
            if state.network is None and decoded.header is not None:
                state.network = decoded.header.network
            self._account(state, decoded)
            self._emit(decoded, pdu)
            results.append(decoded)
        return results

    def _account(self, state: ConnectionState, decoded: DecodedMessage) -> None:
        """Account."""
        state.messages += 1
        if decoded.error is not None:
            state.errors += 1
        if decoded.kind is MessageKind.UNKNOWN:
            state.unknown += 1
        command = decoded.command or "<?>"
        state.commands[command] = state.commands.get(command, 0) + 1

    def _emit(self, decoded: DecodedMessage, pdu: bytes) -> None:
        """Emit."""
        if decoded.error is not None:
            self.signal_decode_error.emit(decoded)
        elif decoded.kind is MessageKind.UNKNOWN:
            self.signal_unknown_command.emit(decoded.command, pdu[HEADER_LENGTH:])
        else:
            self.signal_message.emit(decoded)
