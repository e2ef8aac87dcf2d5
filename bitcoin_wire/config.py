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
from pathlib import Path

import appdirs
import bdkpython as bdk

from .p2p.networks import extra_magics_for
from .storage import SaveableConfig

logger = logging.getLogger(__name__)


class DissectorConfig(SaveableConfig):
    VERSION = "0.1.0"

    app_name = "bitcoin_wire"
    config_dir = Path(appdirs.user_config_dir(app_name))
    config_file = config_dir / (app_name + ".conf")

    def __init__(
        self,
        desegment: bool = True,
        strict_alert_length: bool = False,
        extra_networks: list[bdk.Network] | None = None,
    ) -> None:
        """Initialize instance.

        desegment: reassemble messages spanning several transport segments
        strict_alert_length: fail alert messages whose signed-region length prefix
            does not match the decoded fields
        extra_networks: bdk networks whose magic the heuristic accepts in
            addition to the built-in table
        """
        super().__init__()
        self.desegment = desegment
        self.strict_alert_length = strict_alert_length
        self.extra_networks: list[bdk.Network] = list(extra_networks) if extra_networks else []

    @property
    def extra_magics(self) -> frozenset[int]:
        """Extra magics."""
        return extra_magics_for(self.extra_networks)

    def after_load(self) -> None:
        """Drop networks whose enum could not be restored."""
        self.extra_networks = [n for n in self.extra_networks if isinstance(n, bdk.Network)]

    @classmethod
    def from_file(cls, filename: str | Path | None = None) -> DissectorConfig:
        """From file."""
        return cls.load(filename or cls.config_file)

    @classmethod
    def exists_or_create(cls, filename: str | Path | None = None) -> DissectorConfig:
        """Load the config file, or return defaults if there is none yet."""
        path = Path(filename) if filename else cls.config_file
        if path.exists():
            return cls.from_file(path)
        logger.info(f"No config at {path}, using defaults")
        return cls()

    def save(self, filename: Path | str | None = None):  # type: ignore[override]
        """Save."""
        return super().save(filename or self.config_file)
