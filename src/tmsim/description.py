"""Reading machine descriptions.

A description consists of five sections, one per line except for the last:

    t e s n i        the alphabet, may be empty
    _                the blank symbol
    0                the accepting states, may be empty or `λ`
    1                the initial state
    1 t 2 n R        any number of transitions `state symbol state symbol direction`

Lines starting with `#` are comments and can appear anywhere. The accepting and initial state lines may end in a
`# comment`, and so may transitions after their fifth token. Elsewhere `#` is an ordinary symbol.
"""

from collections.abc import Iterable, Iterator
from functools import cache
from pathlib import Path

from tmsim.turing_machine import DefinitionError, Direction, MachineDefinition, Rule, TransitionTable

TM_FOLDER = Path(__file__).parent / "tms"
EMPTY = "λ"


class DescriptionError(DefinitionError):
    def __init__(self, line: int, message: str) -> None:
        super().__init__(line, message)
        self.line = line
        self.message = message

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


class InputError(ValueError):
    pass


def significant_lines(text: str) -> Iterator[tuple[int, str]]:
    for line_num, line in enumerate(text.splitlines(), 1):
        if line.lstrip().startswith("#"):
            continue
        yield line_num, line


def expect_line(lines: Iterator[tuple[int, str]], previous: int, what: str) -> tuple[int, list[str]]:
    try:
        line_num, line = next(lines)
    except StopIteration:
        raise DescriptionError(previous + 1, f"The description ends before the {what} line") from None
    return line_num, line.split()


def strip_comment(tokens: list[str], keep: int = 0) -> list[str]:
    for i, token in enumerate(tokens[keep:], keep):
        if token.startswith("#"):
            return tokens[:i]
    return tokens


def parse_single(tokens: list[str], line_num: int, what: str) -> str:
    match tokens:
        case [token]:
            return token
        case []:
            raise DescriptionError(line_num, f"You should specify the {what}")
        case [_, *rest]:
            raise DescriptionError(line_num, f"Unexpected tokens after the {what}: {' '.join(rest)}")


def parse_symbol(token: str, line_num: int, what: str) -> str:
    if len(token) != 1:
        raise DescriptionError(line_num, f"The {what} '{token}' is not a single character")
    return token


def parse_state(token: str, line_num: int, what: str) -> int:
    if not token.isdecimal():
        raise DescriptionError(line_num, f"The {what} '{token}' is not a non-negative integer")
    return int(token)


def parse_rule(tokens: list[str], line_num: int, symbols: frozenset[str]) -> Rule:
    match tokens:
        case [state, read, target, write, direction]:
            pass
        case _:
            raise DescriptionError(
                line_num,
                f"A transition needs the 5 tokens 'state symbol state symbol direction', got {len(tokens)}",
            )
    try:
        parsed_direction = Direction.parse(direction)
    except ValueError as e:
        raise DescriptionError(line_num, str(e)) from e
    rule = Rule(
        parse_state(state, line_num, "current state"),
        parse_symbol(read, line_num, "head symbol"),
        parse_state(target, line_num, "next state"),
        parse_symbol(write, line_num, "write symbol"),
        parsed_direction,
    )
    if rule.read not in symbols:
        raise DescriptionError(line_num, f"The head symbol '{rule.read}' doesn't exist in the alphabet")
    return rule


def parse_description(text: str) -> MachineDefinition:
    lines = significant_lines(text)

    line_num, tokens = expect_line(lines, 0, "alphabet")
    alphabet = frozenset(parse_symbol(token, line_num, "symbol") for token in tokens)

    line_num, tokens = expect_line(lines, line_num, "blank symbol")
    blank = parse_symbol(parse_single(tokens, line_num, "blank symbol"), line_num, "blank symbol")

    line_num, tokens = expect_line(lines, line_num, "accepting states")
    tokens = strip_comment(tokens)
    if tokens == [EMPTY]:
        tokens = []
    accepting = frozenset(parse_state(token, line_num, "accepting state") for token in tokens)

    line_num, tokens = expect_line(lines, line_num, "initial state")
    tokens = strip_comment(tokens)
    initial = parse_state(parse_single(tokens, line_num, "initial state"), line_num, "initial state")

    symbols = alphabet | {blank}
    rules: list[Rule] = []
    defined_on: dict[tuple[int, str], int] = {}
    for line_num, line in lines:
        if not (tokens := strip_comment(line.split(), 5)):
            continue
        rule = parse_rule(tokens, line_num, symbols)
        key = rule.state, rule.read
        if key in defined_on:
            raise DescriptionError(line_num, f"Transition '{key}' is already defined on line {defined_on[key]}")
        defined_on[key] = line_num
        rules.append(rule)

    return MachineDefinition(
        alphabet=alphabet,
        blank=blank,
        accepting=accepting,
        initial=initial,
        transitions=TransitionTable(rules),
    )


def load_description(path: Path) -> MachineDefinition:
    return parse_description(path.read_text(encoding="utf-8"))


@cache
def bundled(name: str) -> MachineDefinition:
    path = TM_FOLDER.joinpath(f"{name}.TM")
    if not path.is_file():
        raise FileNotFoundError(f"There is no bundled machine called '{name}'")
    return load_description(path)


def bundled_names() -> list[str]:
    return sorted(path.stem for path in TM_FOLDER.glob("*.TM"))


def parse_input(definition: MachineDefinition, text: str) -> list[str]:
    symbols = definition.tape_alphabet
    if unknown := sorted({char for char in text if char not in symbols}):
        raise InputError(f"The input contains symbols that are not in the alphabet: {', '.join(unknown)}")
    return list(text)


def split_inputs(lines: Iterable[str]) -> list[str]:
    inputs = [line.removesuffix("\n").removesuffix("\r") for line in lines]
    return inputs or [""]
