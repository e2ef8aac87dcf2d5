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

from bitcoin_wire.p2p.builder import build_message
from bitcoin_wire.p2p.dispatcher import decode_pdu
from bitcoin_wire.p2p.tools import format_tree, format_value, message_table, transaction_table

from ..helpers import coinbase_tx, ping_pdu, sample_tx


def test_format_value() -> None:
    assert format_value(None) == ""
    assert format_value(b"\x01\xff") == "01ff"
    assert format_value(255) == "255 (0xff)"
    assert format_value(True) == "True"
    assert format_value("ping") == "ping"


def test_format_tree() -> None:
    text = format_tree(decode_pdu(ping_pdu()).tree)
    lines = text.splitlines()

    assert lines[0] == "Bitcoin protocol [0:32]"
    assert "  Packet magic [0:4]: MAIN" in lines
    assert "  Command name [4:16]: ping" in lines
    assert any(line.startswith("    Nonce [24:32]: ") and line.endswith("(0x807060504030201)") for line in lines)


def test_message_table() -> None:
    messages = [
        decode_pdu(ping_pdu()),
        decode_pdu(ping_pdu()[:30]),
        decode_pdu(build_message("foo", b"", magic=0x01020304)),
    ]
    tbl = message_table(messages)

    assert len(tbl.rows) == 3
    assert tbl.rows[0][1:5] == ["MAIN", "ping", "8", "ok"]
    assert tbl.rows[1][4] == "error"
    assert tbl.rows[2][1:5] == ["0x01020304", "foo", "0", "note"]
    assert "Unknown command" in tbl.get_string()


def test_transaction_table() -> None:
    text = transaction_table(coinbase_tx(), op_return_limit=3).get_string()
    assert "<coinbase>" in text
    assert "312500000" in text
    assert "hel" in text
    assert "hello" not in text

    tx = sample_tx(n_outputs=3)
    tx.index = 2
    tbl = transaction_table(tx)
    assert tbl.title == "Transaction 2"
    assert len(tbl.rows) == 3
    assert tbl.field_names == ["Inputs", "Amount (sats)"]
