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
import os
import sys
from pathlib import Path

from bitcoin_wire.logging_handlers import RelativePathFormatter, remove_absolute_paths
from bitcoin_wire.logging_setup import setup_logging


def test_remove_absolute_paths() -> None:
    line = f'  File "{os.getcwd()}{os.sep}bitcoin_wire{os.sep}p2p{os.sep}reader.py", line 92'
    assert remove_absolute_paths(line) == f'  File "bitcoin_wire{os.sep}p2p{os.sep}reader.py", line 92'


def test_relative_path_formatter() -> None:
    formatter = RelativePathFormatter(fmt="%(levelname)s - %(message)s")
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

    text = formatter.format(record)
    assert text.startswith("ERROR - failed")
    assert "ValueError: boom" in text
    assert os.getcwd() + os.sep not in text


def test_setup_logging(tmp_path: Path, restore_root_logger: logging.Logger) -> None:
    log_file = setup_logging(log_dir=tmp_path, console_level=logging.WARNING)

    assert log_file == tmp_path / ".bitcoin_wire.log"
    logging.getLogger("bitcoin_wire.p2p.dispatcher").debug("<- ping (8 bytes)")
    for handler in restore_root_logger.handlers:
        handler.flush()

    content = log_file.read_text()
    assert "Starting Bitcoin Wire" in content
    assert "<- ping (8 bytes)" in content
    assert sys.excepthook is not sys.__excepthook__
