# strata — block-based template inheritance and caching
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Engine configuration.

Explicit values win; anything left unset is read from the environment:

``STRATA_TEMPLATE_PATH``
    Search paths, separated by :data:`os.pathsep`.
``STRATA_CACHE``
    ``0``, ``false``, ``no``, ``off`` or empty disables caching.
``STRATA_CACHE_DIR``
    Directory for the file cache.
``STRATA_CACHE_TTL``
    Default cache lifetime in seconds.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from strata.cache.base import DEFAULT_TTL

FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class EngineConfig:
    """Construction-time settings for :class:`~strata.engine.Engine`."""

    paths: list[Path] = field(default_factory=list)
    cache_enabled: bool = True
    cache_dir: Path | None = None
    default_ttl: int = DEFAULT_TTL

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        paths: list[str | Path] | None = None,
        cache_enabled: bool | None = None,
        cache_dir: str | Path | None = None,
        default_ttl: int | None = None,
    ) -> EngineConfig:
        """Build a config from explicit arguments, falling back to *environ*.

        Raises :class:`ValueError` if ``STRATA_CACHE_TTL`` is not an integer.
        """
        env = os.environ if environ is None else environ

        if paths is None:
            raw_paths = env.get("STRATA_TEMPLATE_PATH", "")
            paths = [p for p in raw_paths.split(os.pathsep) if p]

        if cache_enabled is None:
            raw_flag = env.get("STRATA_CACHE")
            cache_enabled = True if raw_flag is None else raw_flag.strip().lower() not in FALSE_VALUES

        if cache_dir is None:
            cache_dir = env.get("STRATA_CACHE_DIR") or None

        if default_ttl is None:
            raw_ttl = env.get("STRATA_CACHE_TTL")
            if raw_ttl is None:
                default_ttl = DEFAULT_TTL
            else:
                try:
                    default_ttl = int(raw_ttl)
                except ValueError as exc:
                    raise ValueError(
                        f"STRATA_CACHE_TTL must be an integer number of seconds, got {raw_ttl!r}"
                    ) from exc

        return cls(
            paths=[Path(p).expanduser() for p in paths],
            cache_enabled=cache_enabled,
            cache_dir=Path(cache_dir).expanduser() if cache_dir else None,
            default_ttl=default_ttl,
        )
