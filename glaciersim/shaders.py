"""Preparation of GLSL program sources and formatting of compiler logs.

A program file holds every stage of a program. Each stage whose key
(``VERTEX_SHADER``, ``COMPUTE_SHADER``, ...) appears in the file is compiled
from the whole file, with ``#define <KEY>`` inserted after the ``#version``
line so that the file can select the code of that stage.
"""

from __future__ import annotations

import enum
import logging
import os
import re
from typing import Dict, List, Optional, Pattern, Tuple, Union

logger = logging.getLogger(__name__)


class ShaderSourceError(ValueError):
    """A program source cannot be prepared for compilation."""


class ShaderStage(enum.Enum):
    """Program stages, each selected by a key that appears in the source."""

    VERTEX = ("VERTEX_SHADER", "vertex shader")
    FRAGMENT = ("FRAGMENT_SHADER", "fragment shader")
    GEOMETRY = ("GEOMETRY_SHADER", "geometry shader")
    TESS_CONTROL = ("TESSELATION_CONTROL", "control shader")
    TESS_EVALUATION = ("EVALUATION_CONTROL", "evaluation shader")
    COMPUTE = ("COMPUTE_SHADER", "compute shader")

    @property
    def key(self) -> str:
        """Identifier that marks the stage in a source and is defined when compiling it."""
        return self.value[0]

    @property
    def description(self) -> str:
        """Human readable stage name used in error reports."""
        return self.value[1]


def read_source(filename: Union[str, os.PathLike]) -> str:
    """Whole text of a program file."""
    try:
        with open(filename, encoding="utf-8") as handle:
            text = handle.read()
    except OSError:
        logger.error("[error] loading program '%s'...", filename)
        raise
    logger.info("loading program '%s'...", filename)
    return text


def prepare_source(text: str, definitions: str) -> str:
    """Source with ``definitions`` inserted after its ``#version`` line.

    An empty text gives an empty source. With no definitions, the text that
    follows the version line is returned.
    """
    if not text:
        return ""

    begin = text.find("#version")
    if begin < 0:
        raise ShaderSourceError("no #version directive found")

    version = ""
    body = text
    end = text.find("\n", begin)
    if end >= 0:
        version = text[: end + 1]
        body = text[end + 1:]
        if "#version" in body:
            raise ShaderSourceError("found several #version directives")

    if definitions:
        return version + definitions + "\n" + body
    return body


def stage_sources(text: str, definitions: str = "") -> Dict[ShaderStage, str]:
    """Prepared source of every stage whose key appears in ``text``, in stage order."""
    return {
        stage: prepare_source(text, f"{definitions}#define {stage.key}\n")
        for stage in ShaderStage
        if stage.key in text
    }


def source_excerpt(source: str, begin_line: int, end_line: int) -> str:
    """Lines ``begin_line`` to ``end_line`` (1-based, inclusive), numbered, tabs expanded."""
    parts: List[str] = []
    for number, line in enumerate(source.splitlines(keepends=True), start=1):
        if number > end_line:
            break
        if number >= begin_line:
            parts.append(f"  {number % 10000:04d}  ")
            parts.append(line.replace("\t", "    "))
    return "".join(parts)


_INT = r"\s*([+-]?\d+)"

# (required head yielding string and line ids, optional tail ending the location)
_LOCATION_FORMATS: Tuple[Tuple[Pattern[str], Pattern[str]], ...] = (
    # nvidia: "0(12) : message"
    (re.compile(_INT + r"\s*\(" + _INT), re.compile(r"\s*\)\s*:\s*")),
    # mesa: "0:12(5): message"
    (re.compile(_INT + r"\s*:" + _INT), re.compile(r"\s*\(\s*[+-]?\d+\)\s*:\s*")),
    # ati: "ERROR: 0:12: message"
    (re.compile(r"ERROR\s*:" + _INT + r"\s*:" + _INT), re.compile(r"\s*:\s*")),
    (re.compile(r"WARNING\s*:" + _INT + r"\s*:" + _INT), re.compile(r"\s*:\s*")),
)


def _parse_location(log: str, pos: int) -> Optional[Tuple[int, int, int]]:
    """String id, line id and message offset of a log line starting at ``pos``."""
    for head, tail in _LOCATION_FORMATS:
        match = head.match(log, pos)
        if match is None:
            continue
        rest = tail.match(log, match.end())
        skip = rest.end() - pos if rest is not None else 0
        return int(match.group(1)), int(match.group(2)), skip
    return None


def format_error_log(log: str, source: str) -> Tuple[str, Optional[int]]:
    """Interleave a compiler log with the source lines its messages point at.

    Returns the formatted report and the first source line reported in an
    error, or ``None`` when no message carries a location.
    """
    logger.debug("[error log]\n%s", log)

    parts: List[str] = []
    first_error: Optional[int] = None
    last_string = -1
    last_line = -1
    pos = 0
    while pos < len(log):
        string_id, line_id, skip = 0, 0, 0
        location = _parse_location(log, pos)
        if location is not None:
            string_id, line_id, skip = location
            if string_id != last_string or line_id != last_line:
                first_error = line_id if first_error is None else min(first_error, line_id)
                parts.append("\n")
                parts.append(source_excerpt(source, last_line + 1, line_id))
                parts.append("\n")

        start = pos + skip
        newline = log.find("\n", start)
        stop = len(log) if newline < 0 else newline + 1
        parts.append(log[start:stop])
        pos = max(stop, pos + 1)

        last_string = string_id
        last_line = line_id

    parts.append("\n")
    parts.append(source_excerpt(source, last_line + 1, 1000))
    parts.append("\n")
    return "".join(parts), first_error