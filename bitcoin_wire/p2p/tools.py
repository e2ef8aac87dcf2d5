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
from collections.abc import Iterable

from prettytable import PrettyTable

from .dispatcher import DecodedMessage
from .fields import FieldNode
from .messages import Transaction

OP_RETURN = 0x6A


def format_value(value) -> str:
    """Format value."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return f"{value} ({value:#x})"
    return str(value)


def format_tree(node: FieldNode, indent: int = 0) -> str:
    """Indented text rendering of a field tree."""
    value = format_value(node.value)
    line = f"{'  ' * indent}{node.label} [{node.offset}:{node.end}]"
    if value:
        line += f": {value}"
    lines = [line]
    for child in node.children:
        lines.append(format_tree(child, indent + 1))
    return "\n".join(lines)


def message_table(messages: Iterable[DecodedMessage]) -> PrettyTable:
    """One row per decoded message."""
    tbl = PrettyTable()
    tbl.field_names = ["#", "Network", "Command", "Length", "Status", "Info"]
    for i, decoded in enumerate(messages):
        header = decoded.header
        network = ""
        length = ""
        if header is not None:
            network = header.network.name if header.network else f"{header.magic:#010x}"
            length = str(header.length)
        if decoded.error is not None:
            status = "error"
        elif decoded.expert_infos:
            status = decoded.expert_infos[0].severity.value
        else:
            status = "ok"
        info = "; ".join(info.message for info in decoded.expert_infos)
        tbl.add_row([i, network, decoded.command or "<?>", length, status, info])
    return tbl


def transaction_table(tx: Transaction, op_return_limit: int | None = None) -> PrettyTable:
    """Inputs and outputs of a decoded transaction side by side."""
    # --- Inputs column, with explicit coinbase label ---
    if tx.is_coinbase:
        input_column = ["<coinbase>"]
    else:
        input_column = [str(txin.previous_output) for txin in tx.inputs]

    output_vals = []
    op_returns = []
    for out in tx.outputs:
        output_vals.append(str(out.value))
        if op_return_limit is not None and out.script[:1] == bytes([OP_RETURN]):
            # strip OP_RETURN + the push-data opcode byte
            text = out.script[2:].decode("ascii", errors="replace")
            op_returns.append(text[:op_return_limit])
        else:
            op_returns.append("")

    # match row count across all columns
    max_rows = max(len(input_column), len(output_vals), 1)

    def stretch(col):
        """Stretch."""
        return list(col) + [""] * (max_rows - len(col))

    tbl = PrettyTable()
    tbl.title = "Transaction" if tx.index is None else f"Transaction {tx.index}"
    tbl.add_column("Inputs", stretch(input_column))
    tbl.add_column("Amount (sats)", stretch(output_vals))
    if op_return_limit is not None:
        tbl.add_column("OP_RETURN", stretch(op_returns))
    return tbl

