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


class DecodeError(ValueError):
    """A message could not be decoded.

    ``offset`` and ``length`` describe the offending byte range, relative to
    the buffer the failing reader was created on.
    """

    def __init__(self, message: str, offset: int = 0, length: int = 0) -> None:
        """Initialize instance."""
        super().__init__(message)
        self.offset = offset
        self.length = length


class TruncatedInput(DecodeError):
    """Fewer bytes are available than a field declares."""

    def __init__(self, needed: int, available: int, offset: int = 0) -> None:
        """Initialize instance."""
        super().__init__(
            f"Truncated input at offset {offset}: need {needed} bytes, have {available}",
            offset=offset,
            length=max(available, 0),
        )
        self.needed = needed
        self.available = available


class LengthOverflow(DecodeError):
    """A declared length would move the cursor past the largest representable offset."""

    def __init__(self, offset: int, length: int, limit: int) -> None:
        """Initialize instance."""
        super().__init__(
            f"Declared length {length} at offset {offset} exceeds the offset limit {limit}",
            offset=offset,
        )
        self.declared_length = length
        self.limit = limit


class UnknownCommand(DecodeError):
    """No decoder is registered for the command name."""

    def __init__(self, command: bytes) -> None:
        """Initialize instance."""
        super().__init__(f"Unknown command {command!r}", offset=4, length=12)
        self.command = command
