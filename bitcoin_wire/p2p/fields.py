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
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any


class Severity(enum.Enum):
    NOTE = "note"
    WARN = "warn"
    ERROR = "error"


@dataclass
class ExpertInfo:
    """A diagnostic attached to a byte range of the decoded PDU."""

    severity: Severity
    message: str
    offset: int = 0
    length: int = 0


@dataclass
class FieldNode:
    """One decoded field.

    ``key`` is the semantic field identifier (e.g. ``bitcoin.tx.in.seq``),
    ``offset``/``length`` the absolute byte range in the PDU buffer.
    """

    key: str
    label: str
    offset: int
    length: int
    value: Any = None
    children: list[FieldNode] = field(default_factory=list)

    @property
    def end(self) -> int:
        """Offset one past the last byte of the field."""
        return self.offset + self.length

    def add(self, child: FieldNode) -> FieldNode:
        """Append a child and return it."""
        self.children.append(child)
        return child

    def walk(self) -> Iterator[FieldNode]:
        """Depth-first iteration over this node and all descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, key: str) -> FieldNode | None:
        """First node with ``key`` in depth-first order."""
        for node in self.walk():
            if node.key == key:
                return node
        return None

    def find_all(self, key: str) -> list[FieldNode]:
        """Find all."""
        return [node for node in self.walk() if node.key == key]

    def as_dict(self) -> dict[str, Any]:
        """Plain dict representation, e.g. for json export."""
        value = self.value
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).hex()
        elif isinstance(value, enum.Enum):
            value = value.name
        d: dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "offset": self.offset,
            "length": self.length,
            "value": value,
        }
        if self.children:
            d["children"] = [child.as_dict() for child in self.children]
        return d
