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

"""Template executors: run a template body and stream its output.

An executor's only job is to evaluate the source at ``template.path``
with ``template.variables`` in scope, passing each emitted chunk to
``template.write()`` in order.  Block directives called by the body talk
to the :class:`~strata.template.template.Template` directly.

:class:`JinjaExecutor` is the default.  It iterates
``jinja2.Template.generate()`` so directive side effects interleave with
the output exactly as written.  Jinja2 buffers the output of macros and
of ``call``, ``filter`` and ``set`` blocks, so block directives must be
used at template level or inside ``if``/``for`` bodies.
"""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import BaseLoader, Environment, TemplateNotFound

if TYPE_CHECKING:
    from strata.template.template import Template

logger = logging.getLogger(__name__)


class BaseExecutor(ABC):
    """Runs template bodies on behalf of :class:`Template`."""

    @abstractmethod
    def execute(self, template: Template) -> None:
        """Evaluate *template* and feed its output to ``template.write``."""

    @staticmethod
    def bind_directives(template: Template) -> dict[str, Callable[..., Any]]:
        """Return the context's directives bound to *template*.

        Directives take the template as first argument; bound versions
        return ``""`` instead of ``None`` so they print nothing.
        """
        return {
            name: _bind(func, template)
            for name, func in template.context.directives.items()
        }


def _bind(func: Callable[..., Any], template: Template) -> Callable[..., Any]:
    @functools.wraps(func)
    def bound(*args: Any, **kwargs: Any) -> Any:
        result = func(template, *args, **kwargs)
        return "" if result is None else result

    return bound


def _none_as_empty(value: Any) -> Any:
    return "" if value is None else value


class _PathLoader(BaseLoader):
    """Jinja2 loader addressing templates by absolute path."""

    def get_source(
        self, environment: Environment, template: str,
    ) -> tuple[str, str, Callable[[], bool]]:
        path = Path(template)
        if not path.is_file():
            raise TemplateNotFound(template)
        source = path.read_text(encoding="utf-8")
        mtime = path.stat().st_mtime
        return source, str(path), lambda: path.is_file() and path.stat().st_mtime == mtime


class JinjaExecutor(BaseExecutor):
    """Execute templates written in Jinja2 syntax.

    Args:
        environment: A preconfigured environment.  Its loader must accept
            absolute file paths as template names.  Defaults to an
            environment with a path loader, trailing newlines kept,
            autoescaping off and ``None`` printed as nothing.
    """

    def __init__(self, environment: Environment | None = None) -> None:
        self.environment = environment or Environment(
            loader=_PathLoader(),
            keep_trailing_newline=True,
            autoescape=False,
            finalize=_none_as_empty,
        )

    def execute(self, template: Template) -> None:
        compiled = self.environment.get_template(str(template.path))
        scope = {**self.bind_directives(template), **template.variables}
        logger.debug("Executing %s", template.path)
        for chunk in compiled.generate(scope):
            template.write(chunk)
