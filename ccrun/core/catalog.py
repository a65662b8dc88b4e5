"""Build and run method catalogs.

Each method is a named shell command template with positional ``{}``
placeholders. The kind (single or multi-process) and the substitution shape
are tagged on the entry once, when the catalog is built, from the tokens in
the method name:

- ``MPI`` marks a multi-process method unless ``No MPI`` is also present
- ``Makefile`` marks a build-file driven method (no source name slot)
- ``Portable Source`` marks the five-slot source generation method
"""

from dataclasses import dataclass
from enum import Enum, auto
from string import Formatter
from typing import Iterable

from typeguard import typechecked

from ccrun.core.errors import UnknownMethod


MPI_TOKEN = "MPI"
NO_MPI_TOKEN = "No MPI"
BUILD_FILE_TOKEN = "Makefile"
PORTABLE_SOURCE_TOKEN = "Portable Source"


class Kind(Enum):
    SINGLE_PROCESS = auto()
    MULTI_PROCESS = auto()


class Shape(Enum):
    """Which parameters a template takes, and in what order."""

    STANDARD = auto()  # [np,] source, output
    BUILD_FILE = auto()  # [np,] output
    PORTABLE_SOURCE = auto()  # np, source, np, _output, output
    EXECUTABLE = auto()  # [np,] output


def classify(name: str, executable: bool = False) -> tuple[Kind, Shape]:
    """Derive kind and shape from the tokens in a method name."""
    if MPI_TOKEN in name and NO_MPI_TOKEN not in name:
        kind = Kind.MULTI_PROCESS
    else:
        kind = Kind.SINGLE_PROCESS

    if executable:
        shape = Shape.EXECUTABLE
    elif PORTABLE_SOURCE_TOKEN in name:
        shape = Shape.PORTABLE_SOURCE
    elif BUILD_FILE_TOKEN in name:
        shape = Shape.BUILD_FILE
    else:
        shape = Shape.STANDARD
    return kind, shape


def placeholder_count(template: str) -> int:
    """Count the replacement fields in a format template."""
    return sum(1 for _, field, _, _ in Formatter().parse(template) if field is not None)


@typechecked
@dataclass(frozen=True)
class MethodEntry:
    name: str
    template: str
    kind: Kind
    shape: Shape

    @classmethod
    def from_name(cls, name: str, template: str, executable: bool = False) -> "MethodEntry":
        kind, shape = classify(name, executable=executable)
        return cls(name=name, template=template, kind=kind, shape=shape)

    @property
    def is_multi_process(self) -> bool:
        return self.kind is Kind.MULTI_PROCESS

    @property
    def slots(self) -> int:
        return placeholder_count(self.template)


class MethodCatalog:
    """Read-only registry of method entries keyed by name."""

    def __init__(self, title: str, entries: Iterable[MethodEntry]):
        self.title = title
        self._entries: dict[str, MethodEntry] = {}
        for entry in entries:
            if entry.name in self._entries:
                raise ValueError(f"duplicate method '{entry.name}' in {title} catalog")
            self._entries[entry.name] = entry

    def lookup(self, name: str) -> MethodEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise UnknownMethod(name, self.names()) from None

    def names(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def _build(name: str, template: str) -> MethodEntry:
    return MethodEntry.from_name(name, template)


def _run(name: str, template: str) -> MethodEntry:
    return MethodEntry.from_name(name, template, executable=True)


BUILD_METHODS = MethodCatalog(
    "build",
    [
        _build("Basic (No MPI)", "gcc {} -o {}"),
        _build("Optimized (No MPI)", "gcc -O3 {} -o {}"),
        _build("Debug (No MPI)", "gcc -g -O0 -Wall -Wextra {} -o {}"),
        _build("Makefile (No MPI)", "make {}"),
        _build("MPI Manual", "mpicc -DNUM_PROCS={} {} -o {}"),
        _build("MPI with Makefile", "make NUM_PROCS={} {}"),
        # mpiport writes the generated source to _<output>
        _build(
            "MPI Portable Source",
            "mpiport -np {} {} && mpicc -DNUM_PROCS={} -x c {} -o {}",
        ),
    ],
)

RUN_METHODS = MethodCatalog(
    "run",
    [
        _run("Basic (No MPI)", "./{}"),
        _run("Valgrind (No MPI)", "valgrind --leak-check=full ./{}"),
        _run("MPI", "mpirun -np {} ./{}"),
        _run("MPI with Slurm", "srun -n {} ./{}"),
    ],
)
