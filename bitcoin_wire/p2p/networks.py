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
from collections.abc import Iterable

import bdkpython as bdk

logger = logging.getLogger(__name__)


class Network(enum.Enum):
    """Network magic numbers, as the first 4 header bytes read little-endian."""

    MAIN = 0xD9B4BEF9
    TESTNET = 0xDAB5BFFA
    TESTNET3 = 0x0709110B
    LITECOIN = 0xDBB6C0FB
    LITECOIN_TESTNET = 0xDCB7C1FC  # dogecoin testnet reuses this value
    DOGECOIN = 0xC0C0C0C0

    @property
    def wire_bytes(self) -> bytes:
        """The magic as it appears on the wire."""
        return self.value.to_bytes(4, "little")


KNOWN_MAGICS: frozenset[int] = frozenset(network.value for network in Network)


# Magic of each bdk network: the four wire bytes read as a big-endian int
BDK_MAGIC_VALUES: dict[bdk.Network, int] = {
    bdk.Network.BITCOIN: 0xF9BEB4D9,
    bdk.Network.TESTNET: 0x0B110907,
    bdk.Network.REGTEST: 0xFABFB5DA,
    bdk.Network.SIGNET: 0x0A03CF40,
    bdk.Network.TESTNET4: 0x1C163F28,
}


def magic_for_bdk_network(network: bdk.Network) -> int:
    """Magic of a bdk network, in the little-endian reading used by :class:`Network`."""
    return int.from_bytes(BDK_MAGIC_VALUES[network].to_bytes(4, "big"), "little")


def extra_magics_for(networks: Iterable[bdk.Network]) -> frozenset[int]:
    """Extra magics for."""
    magics = set()
    for network in networks:
        if network not in BDK_MAGIC_VALUES:
            logger.debug(f"No magic known for {network}, ignoring")
            continue
        magics.add(magic_for_bdk_network(network))
    return frozenset(magics)


def network_for_magic(magic: int) -> Network | None:
    """Network for magic."""
    try:
        return Network(magic)
    except ValueError:
        return None
