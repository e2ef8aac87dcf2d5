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

import bdkpython as bdk
import pytest

from bitcoin_wire.p2p.heuristic import classify, looks_like_bitcoin
from bitcoin_wire.p2p.networks import (
    KNOWN_MAGICS,
    Network,
    extra_magics_for,
    magic_for_bdk_network,
    network_for_magic,
)

from ..helpers import ping_pdu


@pytest.mark.parametrize("network", list(Network))
def test_known_magics(network: Network) -> None:
    data = network.wire_bytes + ping_pdu()[4:]
    assert classify(data) is network
    assert looks_like_bitcoin(data)


def test_magic_values() -> None:
    assert Network.MAIN.wire_bytes == bytes.fromhex("f9beb4d9")
    assert Network.TESTNET3.wire_bytes == bytes.fromhex("0b110907")
    assert KNOWN_MAGICS == {0xD9B4BEF9, 0xDAB5BFFA, 0x0709110B, 0xDBB6C0FB, 0xDCB7C1FC, 0xC0C0C0C0}


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"\xf9\xbe\xb4",
        b"GET / HTTP/1.1\r\n",
        bytes.fromhex("d9b4bef9") + b"\x00" * 20,  # byte swapped main magic
    ],
)
def test_declines(data: bytes) -> None:
    assert classify(data) is None
    assert not looks_like_bitcoin(data)


def test_bdk_network_magics() -> None:
    assert magic_for_bdk_network(bdk.Network.BITCOIN) == Network.MAIN.value
    assert magic_for_bdk_network(bdk.Network.TESTNET) == Network.TESTNET3.value
    # regtest shares the magic of the original testnet
    assert network_for_magic(magic_for_bdk_network(bdk.Network.REGTEST)) is Network.TESTNET
    assert network_for_magic(magic_for_bdk_network(bdk.Network.SIGNET)) is None


def test_extra_magics() -> None:
    signet_data = bytes.fromhex("0a03cf40") + b"\x00" * 20
    assert classify(signet_data) is None

    extra = extra_magics_for([bdk.Network.SIGNET])
    assert extra == {0x40CF030A}
    assert classify(signet_data, extra_magics=extra) == 0x40CF030A
    assert classify(ping_pdu(), extra_magics=extra) is Network.MAIN
