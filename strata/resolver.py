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

"""Template name resolution.

Resolution order for ``resolver.resolve("page.html", extra_paths)``:

1. ``<search path>/page.html`` for each configured search path
2. ``<extra path>/page.html`` for each extra path (typically the
   directory of the template doing the lookup)
3. ``page.html`` itself, if it names an existing file

A ``namespace:name`` form replaces the search paths with the paths
registered for ``namespace``.  Unknown namespaces are treated as part of
the file name.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from strata.errors import TemplateNotFound


class PathResolver:
    """Resolve template names against search paths and namespaces."""

    def __init__(
        self,
        paths: Iterable[str | Path] = (),
        namespaces: Mapping[str, Iterable[str | Path]] | None = None,
    ) -> None:
        self.paths: tuple[Path, ...] = tuple(Path(p).expanduser() for p in paths)
        self.namespaces: dict[str, tuple[Path, ...]] = {}
        for name, ns_paths in (namespaces or {}).items():
            self.add_namespace(name, ns_paths)

    def add_namespace(self, name: str, paths: Iterable[str | Path]) -> None:
        self.namespaces[name] = tuple(Path(p).expanduser() for p in paths)

    def copy(self) -> PathResolver:
        return PathResolver(self.paths, self.namespaces)

    def resolve(self, name: str, extra_paths: Iterable[str | Path] = ()) -> Path:
        """Return the absolute path of template *name*.

        Raises :class:`~strata.errors.TemplateNotFound` if no candidate
        file exists.
        """
        search = [*self.paths, *(Path(p) for p in extra_paths)]

        namespace, sep, rest = name.partition(":")
        if sep and ":" not in rest and namespace in self.namespaces:
            name = rest
            search = list(self.namespaces[namespace])

        for directory in search:
            candidate = directory / name
            if candidate.is_file():
                return candidate.resolve()

        direct = Path(name).expanduser()
        if direct.is_file():
            return direct.resolve()

        raise TemplateNotFound(name, search)
