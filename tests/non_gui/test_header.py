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

import pytest

from bitcoin_wire.p2p.builder import build_message, double_sha256
from bitcoin_wire.p2p.errors import TruncatedInput
from bitcoin_wire.p2p.header import HEADER_LENGTH, parse_header, pdu_length
from bitcoin_wire.p2p.networks import Network

from ..helpers import PING_NONCE_BYTES, ping_pdu


def test_parse_ping_header() -> None:
    pdu = ping_pdu()
    assert pdu[:4] == bytes.fromhex("f9beb4d9")

    header = parse_header(pdu)
    assert header.magic == 0xD9B4BEF9
    assert header.network is Network.MAIN
    assert header.command == b"ping" + b"\x00" * 8
    assert header.command_name == "ping"
    assert header.length == 8
    assert header.checksum == double_sha256(PING_NONCE_BYTES)[:4]
    assert header.pdu_length == HEADER_LENGTH + 8 == len(pdu)


def test_unknown_magic_is_kept() -> None:
    header = parse_header(build_message("ping", PING_NONCE_BYTES, magic=0x01020304))
    assert header.magic == 0x01020304
    assert header.network is None


def test_short_header() -> None:
    with pytest.raises(TruncatedInput) as exc_info:
        parse_header(ping_pdu()[:23])
    assert exc_info.value.needed == HEADER_LENGTH
    assert exc_info.value.available == 23


def test_pdu_length_at_offset() -> None:
    data = b"\x00" * 5 + build_message("tx", b"\x01" * 300)
    assert pdu_length(data, 5) == HEADER_LENGTH + 300
    with pytest.raises(TruncatedInput):
        pdu_length(data[:20], 5)


def test_header_field_tree() -> None:
    tree = parse_header(ping_pdu()).field_tree(offset=100)
    assert [(child.key, child.offset, child.length) for child in tree.children] == [
        ("bitcoin.magic", 100, 4),
        ("bitcoin.command", 104, 12),
        ("bitcoin.length", 116, 4),
        ("bitcoin.checksum", 120, 4),
    ]
    assert tree.find("bitcoin.magic").value is Network.MAIN
    assert tree.find("bitcoin.command").value == "ping"


def test_command_too_long() -> None:
    with pytest.raises(ValueError):
        build_message("thirteenchars", b"")
