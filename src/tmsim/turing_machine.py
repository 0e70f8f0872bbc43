import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from itertools import repeat
from typing import NamedTuple, Self

from rich.text import Text

logger = logging.getLogger(__name__)


class DefinitionError(ValueError):
    """A machine definition that cannot be simulated."""


class Direction(IntEnum):
    L = -1
    R = 1

    @classmethod
    def parse(cls, val: str) -> Self:
        match val:
            case "L" | "R":
                return getattr(cls, val)
            case _:
                raise ValueError(f"Invalid direction '{val}', expected 'L' or 'R'")


class Transition(NamedTuple):
    state: int
    write: str
    direction: Direction


class Rule(NamedTuple):
    state: int
    read: str
    target: int
    write: str
    direction: Direction


def is_state(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_symbol(value: object) -> bool:
    return isinstance(value, str) and len(value) == 1


class TransitionTable(Mapping[tuple[int, str], Transition]):
    """Immutable mapping from `(state, symbol under the head)` to the transition taken.

    A missing key is not an error, it is what halts the machine.
    """

    def __init__(self, rules: Iterable[Rule | tuple[int, str, int, str, Direction]] = ()) -> None:
        self._trans: dict[tuple[int, str], Transition] = {}
        for state, read, target, write, direction in rules:
            if not is_state(state) or not is_state(target):
                raise DefinitionError(f"Transition '{(state, read)}' uses an invalid state, states are non-negative ints")
            if not is_symbol(read) or not is_symbol(write):
                raise DefinitionError(f"Transition '{(state, read)}' uses an invalid symbol, symbols are single chars")
            if not isinstance(direction, Direction):
                raise DefinitionError(f"Transition '{(state, read)}' has an invalid direction {direction!r}")
            if (state, read) in self._trans:
                raise DefinitionError(f"Transition '{(state, read)}' is defined more than once")
            self._trans[state, read] = Transition(target, write, direction)

    def __getitem__(self, key: tuple[int, str]) -> Transition:
        return self._trans[key]

    def __iter__(self) -> Iterator[tuple[int, str]]:
        return iter(self._trans)

    def __len__(self) -> int:
        return len(self._trans)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self.rules())!r})"

    def lookup(self, state: int, symbol: str) -> Transition | None:
        return self._trans.get((state, symbol))

    def rules(self) -> Iterator[Rule]:
        for (state, read), (target, write, direction) in self._trans.items():
            yield Rule(state, read, target, write, direction)

    def symbols(self) -> set[str]:
        return {symbol for (_, read), (_, write, _) in self._trans.items() for symbol in (read, write)}


@dataclass
class Configuration:
    state: int
    left: str
    right: str
    blank: str = "_"

    def __post_init__(self) -> None:
        self.left = self.left.lstrip(self.blank)
        self.right = self.right.rstrip(self.blank)

    def __str__(self) -> str:
        return f"...{self.left}[{self.state}]{self.right}..."

    def pretty(self) -> Text:
        blank = (self.blank, "grey58")
        left = [blank if char == self.blank else char for char in self.left]
        right = [blank if char == self.blank else char for char in self.right]
        return Text.assemble("...", *left, (f"[{self.state}]", "cyan"), *right, "...")


class Tape:
    """A tape that is blank in both directions and only stores what has been written.

    Cells `0, 1, ...` live in `_right`, cells `-1, -2, ...` live in `_left`.
    """

    def __init__(self, blank: str, input: Iterable[str] = ()) -> None:
        self.blank = blank
        self._left: list[str] = []
        self._right: list[str] = list(input)
        self._pos = 0
        self._low: int | None = 0 if self._right else None
        self._high: int | None = len(self._right) - 1 if self._right else None

    def __repr__(self) -> str:
        return f"Tape(head={self._pos}, contents={''.join(self.contents())!r})"

    @property
    def head(self) -> int:
        return self._pos

    def _cell(self, pos: int) -> tuple[list[str], int]:
        if pos < 0:
            return self._left, -pos - 1
        else:
            return self._right, pos

    def _get(self, pos: int) -> str:
        cells, index = self._cell(pos)
        return cells[index] if index < len(cells) else self.blank

    def read(self) -> str:
        return self._get(self._pos)

    def write(self, symbol: str) -> None:
        cells, index = self._cell(self._pos)
        if index >= len(cells):
            cells.extend(repeat(self.blank, index - len(cells) + 1))
        cells[index] = symbol
        if self._low is None or self._high is None:
            self._low = self._high = self._pos
        else:
            self._low = min(self._low, self._pos)
            self._high = max(self._high, self._pos)

    def move(self, direction: Direction) -> None:
        self._pos += direction

    def contents(self) -> list[str]:
        if self._low is None or self._high is None:
            return []
        return [self._get(pos) for pos in range(self._low, self._high + 1)]

    def configuration(self, state: int) -> Configuration:
        low = self._pos if self._low is None else min(self._low, self._pos)
        high = self._pos if self._high is None else max(self._high, self._pos)
        return Configuration(
            state=state,
            left="".join(self._get(pos) for pos in range(low, self._pos)),
            right="".join(self._get(pos) for pos in range(self._pos, high + 1)),
            blank=self.blank,
        )


@dataclass(frozen=True)
class MachineDefinition:
    alphabet: frozenset[str]
    blank: str
    accepting: frozenset[int]
    initial: int
    transitions: TransitionTable = field(default_factory=TransitionTable)

    def __post_init__(self) -> None:
        if not is_symbol(self.blank):
            raise DefinitionError(f"The blank symbol must be a single character, got {self.blank!r}")
        if not is_state(self.initial):
            raise DefinitionError(f"The initial state must be a non-negative int, got {self.initial!r}")
        if bad := [state for state in self.accepting if not is_state(state)]:
            raise DefinitionError(f"Accepting states must be non-negative ints, got {bad!r}")
        if bad := [symbol for symbol in self.alphabet if not is_symbol(symbol)]:
            raise DefinitionError(f"Alphabet symbols must be single characters, got {bad!r}")
        object.__setattr__(self, "alphabet", frozenset(self.alphabet) | {self.blank})
        object.__setattr__(self, "accepting", frozenset(self.accepting))
        if not isinstance(self.transitions, TransitionTable):
            object.__setattr__(self, "transitions", TransitionTable(self.transitions))

    @property
    def tape_alphabet(self) -> frozenset[str]:
        return self.alphabet | self.transitions.symbols()


@dataclass
class Machine:
    definition: MachineDefinition
    state: int = field(init=False)
    halted: bool = field(init=False)
    steps: int = field(init=False)
    tape: Tape = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    @property
    def accepted(self) -> bool:
        return self.halted and self.state in self.definition.accepting

    def reset(self, input: Iterable[str] = ()) -> None:
        self.tape = Tape(self.definition.blank, input)
        self.state = self.definition.initial
        self.halted = False
        self.steps = 0

    def configuration(self) -> Configuration:
        return self.tape.configuration(self.state)

    def step(self) -> bool:
        """Takes a single transition, returns `False` once the machine has halted."""
        if self.halted:
            return False
        transition = self.definition.transitions.lookup(self.state, self.tape.read())
        if transition is None:
            self.halted = True
            logger.debug(
                "Halted in state %d at position %d after %d steps, %s",
                self.state,
                self.tape.head,
                self.steps,
                "accepting" if self.accepted else "rejecting",
            )
            return False
        state, symbol, direction = transition
        self.tape.write(symbol)
        self.tape.move(direction)
        self.state = state
        self.steps += 1
        return True

    def run(self, input: Iterable[str] = (), *, trace: Callable[[Configuration], object] | None = None) -> bool:
        symbols = list(input)
        self.reset(symbols)
        logger.debug("Starting run in state %d on %d input symbols", self.state, len(symbols))
        if trace is not None:
            trace(self.configuration())
        while self.step():
            if trace is not None:
                trace(self.configuration())
        return self.accepted

    def configurations(self, input: Iterable[str] = ()) -> Iterator[Configuration]:
        self.reset(input)
        yield self.configuration()
        while self.step():
            yield self.configuration()
