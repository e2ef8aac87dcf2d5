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
import json
import logging
import os
from pathlib import Path
from typing import Any

import bdkpython as bdk
from bitcoin_safe_lib.util import time_logger
from packaging import version
from typing_extensions import Self

logger = logging.getLogger(__name__)


def serialize_enum(obj: Any) -> dict[str, Any]:
    """json.dumps default: enums are written as their class and member name."""
    if isinstance(obj, enum.Enum):
        return {"__enum__": True, "name": obj.__class__.__name__, "value": obj.name}
    raise TypeError(f"Object of type {obj.__class__.__name__} is not JSON serializable")


class SaveableConfig:
    """Flat settings object stored as a json dict.

    The dict carries ``__class__`` and ``VERSION`` next to the instance
    attributes. Enum members listed in ``known_enums`` round trip by name.
    """

    known_enums: dict[str, type[enum.Enum]] = {"Network": bdk.Network}
    VERSION = "0.0.0"

    def dump(self) -> dict[str, Any]:
        """Dump."""
        d: dict[str, Any] = {"__class__": self.__class__.__name__, "VERSION": self.VERSION}
        d.update(self.__dict__)
        return d

    def dumps(self, indent=None) -> str:
        """Dumps."""
        return json.dumps(self.dump(), default=serialize_enum, indent=indent, sort_keys=True)

    @classmethod
    def _deserialize_enum(cls, dct: dict[str, Any]) -> Any:
        if not dct.get("__enum__"):
            return dct
        enum_cls = cls.known_enums.get(dct.get("name", ""))
        if enum_cls is not None and dct.get("value") in enum_cls.__members__:
            return enum_cls[dct["value"]]
        logger.error(f"Could not deserialize {dct.get('name')}({dct.get('value')}), it will be dropped.")
        return None

    @classmethod
    def from_dumps(cls, json_string: str) -> Self:
        """From dumps."""
        dct = json.loads(json_string, object_hook=cls._deserialize_enum)
        if not isinstance(dct, dict) or dct.pop("__class__", None) != cls.__name__:
            raise ValueError(f"Not a {cls.__name__} dump")

        stored_version = str(dct.pop("VERSION", "0.0.0"))
        if version.parse(stored_version) > version.parse(cls.VERSION):
            logger.warning(
                f"{cls.__name__} was saved by a newer version ({stored_version} > {cls.VERSION}). "
                "Unknown settings are ignored."
            )

        instance = cls()
        for k, v in dct.items():
            # only overwrite the default value, if there is a value for a known setting
            if v is not None and k in instance.__dict__:
                setattr(instance, k, v)
        instance.after_load()
        return instance

    def after_load(self) -> None:
        """Hook to normalize attributes after loading."""

    def clone(self) -> Self:
        """Clone."""
        return self.from_dumps(self.dumps())

    @time_logger
    def save(self, filename: Path | str) -> None:
        """Saves the json dumps to a file."""
        directory = os.path.dirname(str(filename))
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filename, "w") as f:
            f.write(self.dumps(indent=2))

    @classmethod
    @time_logger
    def load(cls, filename: Path | str) -> Self:
        """Loads the class from a file."""
        logger.debug(f"Opening {filename}")
        with open(filename) as f:
            return cls.from_dumps(f.read())
