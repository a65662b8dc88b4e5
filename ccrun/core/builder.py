"""Turns a catalog entry and build parameters into a shell command."""

import logging
import shlex
from dataclasses import dataclass

from typeguard import typechecked

from ccrun.core.catalog import MethodCatalog, MethodEntry, Shape
from ccrun.core.errors import InvalidProcessCount, TemplateMismatch
from ccrun.core.params import BuildParameters


logger = logging.getLogger(__name__)


@typechecked
@dataclass(frozen=True)
class ResolvedCommand:
    text: str
    is_multi_process: bool
    method: str

    def __str__(self) -> str:
        return self.text


def substitution_values(entry: MethodEntry, params: BuildParameters) -> tuple[str, ...]:
    """Return the ordered template values for an entry's shape and kind.

    File names are shell-quoted; names without special characters are
    left as they are.
    """
    source = shlex.quote(params.source_name)
    output = shlex.quote(params.output_name)

    if entry.is_multi_process:
        if params.process_count is None:
            raise InvalidProcessCount(
                None, f"'{entry.name}' needs a process count"
            )
        np = str(params.process_count)
    else:
        np = ""

    if entry.shape is Shape.PORTABLE_SOURCE:
        return (np, source, np, shlex.quote("_" + params.output_name), output)
    if entry.shape in (Shape.BUILD_FILE, Shape.EXECUTABLE):
        return (np, output) if entry.is_multi_process else (output,)
    return (np, source, output) if entry.is_multi_process else (source, output)


class CommandBuilder:
    """Builds commands from one method catalog."""

    def __init__(self, catalog: MethodCatalog):
        self.catalog = catalog

    def requires_process_count(self, method_name: str) -> bool:
        return self.catalog.lookup(method_name).is_multi_process

    def build(self, method_name: str, params: BuildParameters) -> ResolvedCommand:
        entry = self.catalog.lookup(method_name)
        values = substitution_values(entry, params)

        if entry.slots != len(values):
            raise TemplateMismatch(entry.name, entry.slots, len(values))

        text = entry.template.format(*values)
        logger.debug("%s method '%s' -> %s", self.catalog.title, entry.name, text)
        return ResolvedCommand(
            text=text,
            is_multi_process=entry.is_multi_process,
            method=entry.name,
        )
