"""Root template loading and rendering."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, Environment, FileSystemLoader, Template, TemplateSyntaxError
from markupsafe import Markup

from litestar_inertia.exceptions import RootTemplateError

__all__ = ("RootTemplate", "container_markup")


def container_markup(container_id: str, page_json: str) -> Markup:
    """Return the element the client application mounts on.

    Args:
        container_id: The element id.
        page_json: The JSON encoded page object. It is HTML escaped into the attribute.

    Returns:
        The container markup.
    """
    return Markup('<div id="{}" data-page="{}"></div>').format(container_id, page_json)


class RootTemplate:
    """The HTML document every full page response is rendered from.

    The template receives ``inertia`` (the container element, or the SSR body),
    ``inertia_head`` (SSR head tags, empty without SSR), ``page`` (the page object as a
    dict) and every shared or per-request template value. Templates are parsed on
    construction, so a broken template fails at startup.

    Example::

        <html>
          <head>{{ inertia_head }}</head>
          <body>{{ inertia }}</body>
        </html>
    """

    __slots__ = ("template",)

    def __init__(self, template: "Template | None") -> None:
        if template is None:
            msg = "no template given"
            raise RootTemplateError(msg)
        self.template = template

    @classmethod
    def from_string(cls, source: str, environment: "Environment | None" = None) -> "RootTemplate":
        """Parse a root template from source.

        Args:
            source: The template source.
            environment: The Jinja environment to compile with.

        Raises:
            RootTemplateError: If the source is blank or does not parse.

        Returns:
            The root template.
        """
        if not source or not source.strip():
            msg = "blank root template"
            raise RootTemplateError(msg)
        environment = environment or Environment(loader=BaseLoader(), autoescape=True)
        try:
            return cls(environment.from_string(source))
        except TemplateSyntaxError as exc:
            msg = f"line {exc.lineno}: {exc.message}"
            raise RootTemplateError(msg) from exc

    @classmethod
    def from_file(cls, path: "str | Path") -> "RootTemplate":
        """Read and parse a root template file.

        Templates may extend or include templates from the same directory.

        Args:
            path: The template file.

        Raises:
            RootTemplateError: If the file cannot be read or does not parse.

        Returns:
            The root template.
        """
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"unable to read {str(path)!r}"
            raise RootTemplateError(msg) from exc
        environment = Environment(loader=FileSystemLoader(path.parent), autoescape=True)
        return cls.from_string(source, environment)

    @classmethod
    def from_bytes(cls, source: bytes) -> "RootTemplate":
        """Parse a root template from UTF-8 encoded source.

        Raises:
            RootTemplateError: If the source is not UTF-8, is blank or does not parse.

        Returns:
            The root template.
        """
        try:
            text = source.decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"not UTF-8 encoded ({exc.reason})"
            raise RootTemplateError(msg) from exc
        return cls.from_string(text)

    def render(self, context: "Mapping[str, Any]") -> str:
        return self.template.render(**context)
