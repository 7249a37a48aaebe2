#!/usr/bin/env python3
"""kover.py

Validates and analyzes scenes of buildings and communication antennas.

A scene is read from stdin, checked against a strict line grammar and a
few geometric consistency rules, and then reported on.

Key features:
- Line-oriented grammar with exact begin/end framing.
- Fail-fast validation: the first problem found, in line order, is reported.
- Non-overlapping buildings and non-coincident antennas are enforced while
  the scene is being read.
- Bounding box, summary and detailed description reports.

Run:
  python kover.py summarize < scene.txt
  python kover.py describe < scene.txt
  python kover.py bounding-box < scene.txt
  python kover.py help
"""

from __future__ import annotations

import logging
import os
import re
import sys
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

BEGIN_MARKER = "begin scene"
END_MARKER = "end scene"

SUBCOMMANDS = ("bounding-box", "describe", "help", "summarize")


# -------------------------
# Errors
# -------------------------


class ConfigError(ValueError):
    pass


class UsageError(ValueError):
    pass


class SceneError(ValueError):
    """Base class for every failure raised while reading a scene.

    ``str(err)`` is the diagnostic without the ``error:`` prefix.
    """


class MissingBeginMarker(SceneError):
    def __init__(self) -> None:
        super().__init__(f"first line must be exactly '{BEGIN_MARKER}'")


class MissingEndMarker(SceneError):
    def __init__(self) -> None:
        super().__init__(f"last line must be exactly '{END_MARKER}'")


class UnrecognizedLine(SceneError):
    def __init__(self, line_num: int) -> None:
        self.line_num = line_num
        super().__init__(f"unrecognized line (line #{line_num})")


class WrongArgumentCount(SceneError):
    def __init__(self, line_num: int, keyword: str) -> None:
        self.line_num = line_num
        self.keyword = keyword
        super().__init__(
            f"{keyword} line has wrong number of arguments (line #{line_num})"
        )


class InvalidToken(SceneError):
    kind = "token"

    def __init__(self, token: str, line_num: int) -> None:
        self.token = token
        self.line_num = line_num
        super().__init__(f'invalid {self.kind} "{token}" (line #{line_num})')


class InvalidIdentifier(InvalidToken):
    kind = "identifier"


class InvalidInteger(InvalidToken):
    kind = "integer"


class InvalidPositiveInteger(InvalidToken):
    kind = "positive integer"


class TokenTooLong(SceneError):
    def __init__(self, token: str, line_num: int, limit: int) -> None:
        self.token = token
        self.line_num = line_num
        self.limit = limit
        super().__init__(
            f'token "{token}" is longer than {limit} characters (line #{line_num})'
        )


class TooManyEntities(SceneError):
    def __init__(self, kind: str, line_num: int, limit: int) -> None:
        self.kind = kind
        self.line_num = line_num
        self.limit = limit
        super().__init__(
            f"too many {kind}s, at most {limit} allowed (line #{line_num})"
        )


class DuplicateBuildingId(SceneError):
    def __init__(self, ident: str) -> None:
        self.ident = ident
        super().__init__(f"building identifier {ident} is non unique")


class DuplicateAntennaId(SceneError):
    def __init__(self, ident: str) -> None:
        self.ident = ident
        super().__init__(f"antenna identifier {ident} is non unique")


class OverlappingBuildings(SceneError):
    def __init__(self, first_id: str, second_id: str) -> None:
        self.first_id = first_id
        self.second_id = second_id
        super().__init__(f"buildings {first_id} and {second_id} are overlapping")


class CoincidentAntennas(SceneError):
    def __init__(self, first_id: str, second_id: str) -> None:
        self.first_id = first_id
        self.second_id = second_id
        super().__init__(
            f"antennas {first_id} and {second_id} have the same position"
        )


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigError(msg)


# -------------------------
# Scene model
# -------------------------


@dataclass(frozen=True)
class Building:
    """Axis-aligned rectangle centered at (x, y) with half extents w and h."""

    id: str
    x: int
    y: int
    w: int
    h: int

    @property
    def left(self) -> int:
        return self.x - self.w

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y - self.h

    @property
    def top(self) -> int:
        return self.y + self.h


@dataclass(frozen=True)
class Antenna:
    id: str
    x: int
    y: int
    r: int


@dataclass(frozen=True)
class Scene:
    buildings: tuple[Building, ...] = ()
    antennas: tuple[Antenna, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.buildings and not self.antennas


@dataclass(frozen=True)
class BoundingBox:
    min_x: int
    max_x: int
    min_y: int
    max_y: int


@dataclass(frozen=True)
class SceneLimits:
    # None disables the corresponding cap.
    max_token_length: int | None = 10
    max_buildings: int | None = 100
    max_antennas: int | None = 100


# -------------------------
# Lexical validators
# -------------------------

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_INTEGER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)")
_POSITIVE_INTEGER_RE = re.compile(r"[1-9][0-9]*")


def is_valid_identifier(s: str) -> bool:
    return _IDENTIFIER_RE.fullmatch(s) is not None


def is_valid_integer(s: str) -> bool:
    """Signed integer without leading zeros. "-0" is accepted."""
    return _INTEGER_RE.fullmatch(s) is not None


def is_valid_positive_integer(s: str) -> bool:
    return _POSITIVE_INTEGER_RE.fullmatch(s) is not None


# -------------------------
# Line grammar
# -------------------------

_BLANKS_RE = re.compile(r"[ \t]+")

# keyword -> number of arguments following it
LINE_ARITY: dict[str, int] = {"building": 5, "antenna": 4}


def split_line(line: str) -> list[str]:
    """Split a line on runs of spaces and tabs, ignoring outer blanks."""
    stripped = line.strip(" \t")
    if not stripped:
        return []
    return _BLANKS_RE.split(stripped)


def recognize_line(line: str, line_num: int) -> tuple[str, list[str]]:
    """Return ``(keyword, arguments)`` for a building or antenna line.

    Raises UnrecognizedLine for an empty line or an unknown keyword and
    WrongArgumentCount when a known keyword has the wrong arity.
    """
    tokens = split_line(line)
    if not tokens or tokens[0] not in LINE_ARITY:
        raise UnrecognizedLine(line_num)

    keyword, args = tokens[0], tokens[1:]
    if len(args) != LINE_ARITY[keyword]:
        raise WrongArgumentCount(line_num, keyword)
    return keyword, args


# -------------------------
# Geometric / identity validators
# -------------------------


def buildings_overlap(b1: Building, b2: Building) -> bool:
    """Strict interior intersection; rectangles sharing an edge do not overlap."""
    return not (
        b1.right <= b2.left
        or b1.left >= b2.right
        or b1.top <= b2.bottom
        or b1.bottom >= b2.top
    )


def same_position(a1: Antenna, a2: Antenna) -> bool:
    return a1.x == a2.x and a1.y == a2.y


def has_duplicate_id(entities: Iterable[Building | Antenna], ident: str) -> bool:
    return any(e.id == ident for e in entities)


# -------------------------
# Scene builder
# -------------------------

_Validator = tuple[type[InvalidToken], Callable[[str], bool]]

_IDENT: _Validator = (InvalidIdentifier, is_valid_identifier)
_INT: _Validator = (InvalidInteger, is_valid_integer)
_POS: _Validator = (InvalidPositiveInteger, is_valid_positive_integer)

# Argument grammar per keyword, in the order the arguments are checked.
_ARG_GRAMMAR: dict[str, tuple[_Validator, ...]] = {
    "building": (_IDENT, _INT, _INT, _POS, _POS),
    "antenna": (_IDENT, _INT, _INT, _POS),
}


class SceneBuilder:
    """Accumulates buildings and antennas while enforcing scene invariants.

    Every ``add_*`` call either appends the entity or raises the first
    violation found; nothing is stored for a rejected line.
    """

    def __init__(self, limits: SceneLimits | None = None) -> None:
        self.limits = limits or SceneLimits()
        self.buildings: list[Building] = []
        self.antennas: list[Antenna] = []

    def _check_tokens(self, keyword: str, args: list[str], line_num: int) -> None:
        max_len = self.limits.max_token_length
        for token, (error_cls, is_valid) in zip(args, _ARG_GRAMMAR[keyword]):
            if max_len is not None and len(token) > max_len:
                raise TokenTooLong(token, line_num, max_len)
            if not is_valid(token):
                raise error_cls(token, line_num)

    def add_line(self, line: str, line_num: int) -> None:
        keyword, args = recognize_line(line, line_num)
        self._check_tokens(keyword, args, line_num)

        ident, *numbers = args
        values = [int(n) for n in numbers]
        if keyword == "building":
            self.add_building(Building(ident, *values), line_num)
        else:
            self.add_antenna(Antenna(ident, *values), line_num)

    def add_building(self, building: Building, line_num: int) -> None:
        if has_duplicate_id(self.buildings, building.id):
            raise DuplicateBuildingId(building.id)
        for existing in self.buildings:
            if buildings_overlap(existing, building):
                raise OverlappingBuildings(existing.id, building.id)
        cap = self.limits.max_buildings
        if cap is not None and len(self.buildings) >= cap:
            raise TooManyEntities("building", line_num, cap)

        self.buildings.append(building)
        logger.debug("Accepted building %s (line #%d)", building.id, line_num)

    def add_antenna(self, antenna: Antenna, line_num: int) -> None:
        if has_duplicate_id(self.antennas, antenna.id):
            raise DuplicateAntennaId(antenna.id)
        # Stored antennas are pairwise distinct, so the first coincident pair
        # in insertion order is (first stored match, new antenna).
        for existing in self.antennas:
            if same_position(existing, antenna):
                raise CoincidentAntennas(existing.id, antenna.id)
        cap = self.limits.max_antennas
        if cap is not None and len(self.antennas) >= cap:
            raise TooManyEntities("antenna", line_num, cap)

        self.antennas.append(antenna)
        logger.debug("Accepted antenna %s (line #%d)", antenna.id, line_num)

    def build(self) -> Scene:
        return Scene(buildings=tuple(self.buildings), antennas=tuple(self.antennas))


# -------------------------
# Scene reader
# -------------------------


def _chomp(line: str) -> str:
    return line[:-1] if line.endswith("\n") else line


def read_scene(lines: Iterable[str], limits: SceneLimits | None = None) -> Scene:
    """Read a complete scene from an iterable of lines (e.g. a text stream).

    The first line must be exactly the begin marker; reading stops at the
    first line that is exactly the end marker, so anything after it is
    never consumed.
    """
    it = iter(lines)
    first = next(it, None)
    if first is None or _chomp(first) != BEGIN_MARKER:
        raise MissingBeginMarker()

    builder = SceneBuilder(limits)
    for line_num, raw in enumerate(it, start=2):
        line = _chomp(raw)
        if line == END_MARKER:
            scene = builder.build()
            logger.info(
                "Read scene with %d building(s) and %d antenna(s)",
                len(scene.buildings),
                len(scene.antennas),
            )
            return scene
        builder.add_line(line, line_num)

    raise MissingEndMarker()


def parse_scene(text: str, limits: SceneLimits | None = None) -> Scene:
    return read_scene(text.splitlines(keepends=True), limits)


# -------------------------
# Reports
# -------------------------


def compute_bounding_box(scene: Scene) -> BoundingBox | None:
    """Smallest box containing every building and antenna extent."""
    if scene.is_empty:
        return None

    xs: list[int] = []
    ys: list[int] = []
    for b in scene.buildings:
        xs += (b.left, b.right)
        ys += (b.bottom, b.top)
    for a in scene.antennas:
        xs += (a.x - a.r, a.x + a.r)
        ys += (a.y - a.r, a.y + a.r)
    return BoundingBox(min_x=min(xs), max_x=max(xs), min_y=min(ys), max_y=max(ys))


def format_bounding_box(scene: Scene) -> str:
    box = compute_bounding_box(scene)
    if box is None:
        return "undefined (empty scene)"
    return f"bounding box [{box.min_x}, {box.max_x}] x [{box.min_y}, {box.max_y}]"


def _count(n: int, noun: str) -> str:
    return f"{n} {noun}{'s' if n > 1 else ''}"


def format_summary(scene: Scene) -> str:
    if scene.is_empty:
        return "An empty scene"
    parts: list[str] = []
    if scene.buildings:
        parts.append(_count(len(scene.buildings), "building"))
    if scene.antennas:
        parts.append(_count(len(scene.antennas), "antenna"))
    return "A scene with " + " and ".join(parts)


def sorted_buildings(scene: Scene) -> list[Building]:
    return sorted(scene.buildings, key=lambda b: b.id)


def sorted_antennas(scene: Scene) -> list[Antenna]:
    return sorted(scene.antennas, key=lambda a: a.id)


def format_description(scene: Scene) -> str:
    lines = [format_summary(scene)]
    for b in sorted_buildings(scene):
        lines.append(f"  building {b.id} at {b.x} {b.y} with dimensions {b.w} {b.h}")
    for a in sorted_antennas(scene):
        lines.append(f"  antenna {a.id} at {a.x} {a.y} with range {a.r}")
    return "\n".join(lines)


# -------------------------
# Configuration / logging
# -------------------------

_LIMIT_VARS = {
    "max_token_length": "KOVER_MAX_TOKEN_LENGTH",
    "max_buildings": "KOVER_MAX_BUILDINGS",
    "max_antennas": "KOVER_MAX_ANTENNAS",
}


def _parse_limit(raw: str, var: str) -> int | None:
    value = raw.strip()
    if value.lower() == "none":
        return None
    _require(
        is_valid_positive_integer(value),
        f"{var} must be a positive integer or 'none'; got {raw!r}",
    )
    return int(value)


def load_limits(environ: Mapping[str, str] | None = None) -> SceneLimits:
    """Build SceneLimits, overriding defaults from KOVER_MAX_* variables."""
    env = os.environ if environ is None else environ
    overrides: dict[str, int | None] = {}
    for field_name, var in _LIMIT_VARS.items():
        raw = env.get(var)
        if raw is not None:
            overrides[field_name] = _parse_limit(raw, var)
    return SceneLimits(**overrides)


def log_level_from_env(environ: Mapping[str, str] | None = None) -> int:
    """KOVER_LOG_LEVEL as a logging level; unknown names mean WARNING."""
    env = os.environ if environ is None else environ
    level = logging.getLevelName(env.get("KOVER_LOG_LEVEL", "WARNING").upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(environ: Mapping[str, str] | None = None) -> None:
    # Reports go to stdout; diagnostics and log records go to stderr.
    logging.basicConfig(
        level=log_level_from_env(environ),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# -------------------------
# CLI / Help
# -------------------------

HELP_TEXT = """\
Usage: kover SUBCOMMAND
Handles positioning of communication antennas by reading a scene on stdin.

SUBCOMMAND is mandatory and must take one of the following values:
  bounding-box: returns a bounding box of the loaded scene
  describe: describes the loaded scene in details
  help: shows this message
  summarize: summarizes the loaded scene

A scene is a text stream that must satisfy the following syntax:

  1. The first line must be exactly 'begin scene'
  2. The last line must be exactly 'end scene'
  3. Any line between the first and last line must either be a building line
     or an antenna line
  4. A building line has the form 'building ID X Y W H' (with any number of
     blank characters before or after), where
       ID is the building identifier
       X is the x-coordinate of the building
       Y is the y-coordinate of the building
       W is the half-width of the building
       H is the half-height of the building
  5. An antenna line has the form 'antenna ID X Y R' (with any number of
     blank characters before or after), where
       ID is the antenna identifier
       X is the x-coordinate of the antenna
       Y is the y-coordinate of the antenna
       R is the radius scope of the antenna
"""


def parse_subcommand(argv: list[str] | None = None) -> str:
    # Every word counts, including "--" and option-like ones.
    words = sys.argv[1:] if argv is None else list(argv)

    if len(words) != 1:
        raise UsageError("subcommand is mandatory")
    subcommand = words[0]
    if subcommand not in SUBCOMMANDS:
        raise UsageError(f"subcommand '{subcommand}' is not recognized")
    return subcommand


# -------------------------
# Commands
# -------------------------

REPORTS = {
    "bounding-box": format_bounding_box,
    "describe": format_description,
    "summarize": format_summary,
}


def cmd_help() -> None:
    print(HELP_TEXT, end="")


def decode_lines(stream: Iterable[bytes]) -> Iterator[str]:
    """Decode a byte stream lazily, one line at a time.

    Undecodable bytes become lone surrogates, so they surface as ordinary
    token errors on their own line instead of failing the whole read.
    """
    for raw in stream:
        yield raw.decode("utf-8", errors="surrogateescape")


def _stdin_lines() -> Iterable[str]:
    buffer = getattr(sys.stdin, "buffer", None)
    return sys.stdin if buffer is None else decode_lines(buffer)


def cmd_report(subcommand: str, limits: SceneLimits) -> None:
    scene = read_scene(_stdin_lines(), limits)
    print(REPORTS[subcommand](scene))


def main(argv: list[str] | None = None) -> int:
    configure_logging()

    try:
        subcommand = parse_subcommand(argv)
        if subcommand == "help":
            cmd_help()
        else:
            cmd_report(subcommand, load_limits())
    except (UsageError, ConfigError, SceneError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
