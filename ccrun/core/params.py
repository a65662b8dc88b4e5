"""Parameter resolution for build and run commands."""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union

from typeguard import typechecked

from ccrun.core.errors import InvalidProcessCount, NoActiveFile


logger = logging.getLogger(__name__)

MIN_PROCESS_COUNT = 1
MAX_PROCESS_COUNT = 200


@typechecked
@dataclass(frozen=True)
class BuildParameters:
    """Names derived from the active file, plus an optional process count."""

    source_name: str
    output_name: str
    directory: Path
    process_count: Optional[int] = None

    def with_process_count(self, process_count: Optional[int]) -> "BuildParameters":
        if process_count is not None:
            process_count = clamp_process_count(process_count)
        return replace(self, process_count=process_count)


def clamp_process_count(value: int) -> int:
    """Saturate a process count into [MIN_PROCESS_COUNT, MAX_PROCESS_COUNT]."""
    clamped = max(MIN_PROCESS_COUNT, min(MAX_PROCESS_COUNT, value))
    if clamped != value:
        logger.warning(
            "process count %d out of range [%d, %d], using %d",
            value,
            MIN_PROCESS_COUNT,
            MAX_PROCESS_COUNT,
            clamped,
        )
    return clamped


def parse_process_count(raw: str) -> int:
    """Parse free-text process count input and clamp it.

    Only input that is not an integer fails; zero, negative and large
    values are clamped.
    """
    try:
        value = int(raw.strip())
    except (AttributeError, ValueError):
        raise InvalidProcessCount(raw) from None
    return clamp_process_count(value)


def resolve_parameters(
    path: Union[str, Path, None], process_count: Optional[int] = None
) -> BuildParameters:
    """Derive source and output names from the active file path."""
    if path is None or str(path).strip() == "":
        raise NoActiveFile()

    file_path = Path(path).expanduser()
    if not file_path.name:
        raise NoActiveFile(f"'{path}' does not name a file")

    params = BuildParameters(
        source_name=file_path.name,
        output_name=file_path.stem,
        directory=file_path.parent.resolve(),
    )
    logger.debug(
        "resolved %s -> source=%s output=%s",
        path,
        params.source_name,
        params.output_name,
    )
    return params.with_process_count(process_count)
