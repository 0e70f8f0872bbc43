from pathlib import Path

import pytest

from tmsim.description import (
    DescriptionError,
    InputError,
    bundled,
    bundled_names,
    load_description,
    parse_description,
    parse_input,
    split_inputs,
)
from tmsim.turing_machine import DefinitionError, Direction, Machine, MachineDefinition, Transition

SWAP = """\
t e s n i
_
0
1
1 t 2 n R
2 e 3 i R
3 s 4 c R
4 t 8 e L
8 c 0 c R
1 n 5 t R
5 i 6 e R
6 c 7 s R
7 e 9 t L
9 s 0 s R
"""


def test_parse_swap():
    definition = parse_description(SWAP)
    assert definition.alphabet == set("tesni_")
    assert definition.tape_alphabet == set("tesnic_")
    assert definition.blank == "_"
    assert definition.accepting == {0}
    assert definition.initial == 1
    assert len(definition.transitions) == 10
    assert definition.transitions.lookup(4, "t") == Transition(8, "e", Direction.L)


def test_parsed_swap_runs():
    tm = Machine(parse_description(SWAP))
    assert tm.run("test")
    assert "".join(tm.tape.contents()) == "nice"


def test_empty_sections():
    definition = parse_description("\n_\n\n0\n")
    assert definition.alphabet == {"_"}
    assert definition.accepting == frozenset()
    assert len(definition.transitions) == 0


def test_lambda_means_no_accepting_states():
    definition = parse_description("a\n_\nλ\n0\n")
    assert definition.accepting == frozenset()


def test_multiple_accepting_states():
    definition = parse_description("a\n_\n0 3  7\n0\n")
    assert definition.accepting == {0, 3, 7}


def test_comments_and_blank_transition_lines():
    text = """\
# a machine that walks right over a's
a
# the blank
_
1  # accepting
0

0 a 0 a R   # loop
# halt on blank
0 _ 1 _ L
"""
    definition = parse_description(text)
    assert definition.alphabet == {"a", "_"}
    assert definition.accepting == {1}
    assert definition.initial == 0
    assert set(definition.transitions) == {(0, "a"), (0, "_")}
    assert Machine(definition).run("aaa")


def test_written_symbols_need_no_declaration():
    definition = parse_description(SWAP)
    tm = Machine(definition)
    assert tm.run(parse_input(definition, "nice"))
    assert "".join(tm.tape.contents()) == "test"


def test_hash_is_a_symbol_in_the_alphabet():
    definition = parse_description("0 1 #\n_\n0\n0\n")
    assert definition.alphabet == {"0", "1", "#", "_"}


def test_hash_in_transitions_and_trailing_comments():
    text = """\
0 1 #
_
1   # accepting
0   # initial
0 0 0 # R   # zeros become separators
0 1 0 1 R
0 # 0 # R
0 _ 1 _ L
"""
    definition = parse_description(text)
    assert definition.accepting == {1}
    assert definition.initial == 0
    assert definition.transitions.lookup(0, "0") == Transition(0, "#", Direction.R)
    assert definition.transitions.lookup(0, "#") == Transition(0, "#", Direction.R)
    tm = Machine(definition)
    assert tm.run(parse_input(definition, "0#1"))
    assert "".join(tm.tape.contents()) == "##1_"


def test_blank_usable_without_declaring_it():
    definition = parse_description("1\n_\n1\n0\n0 _ 1 1 R\n")
    assert Machine(definition).run("")


@pytest.mark.parametrize(
    ("text", "line", "message"),
    [
        ("", 1, "ends before the alphabet"),
        ("a\n", 2, "ends before the blank symbol"),
        ("a\n\n0\n0\n", 2, "specify the blank symbol"),
        ("a\n_ x\n0\n0\n", 2, "Unexpected tokens after the blank symbol: x"),
        ("a\n__\n0\n0\n", 2, "not a single character"),
        ("a\n_\n", 3, "ends before the accepting states"),
        ("a\n_\nq0\n0\n", 3, "accepting state 'q0'"),
        ("a\n_\n0\n", 4, "ends before the initial state"),
        ("a\n_\n0\n\n", 4, "specify the initial state"),
        ("a\n_\n0\n-1\n", 4, "initial state '-1'"),
        ("a\n_\n0\n1 2\n", 4, "Unexpected tokens after the initial state"),
        ("ab c\n_\n0\n0\n", 1, "symbol 'ab'"),
        ("a\n_\n0\n0\n0 a 1 a\n", 5, "needs the 5 tokens"),
        ("a\n_\n0\n0\n0 a 1 a R x\n", 5, "needs the 5 tokens"),
        ("a\n_\n0\n0\n0 a 1 a R x # c\n", 5, "needs the 5 tokens"),
        ("a\n_ # blank\n0\n0\n", 2, "Unexpected tokens after the blank symbol: # blank"),
        ("a #x\n_\n0\n0\n", 1, "symbol '#x'"),
        ("a\n_\n0\n0\n0 a 1 a N\n", 5, "Invalid direction 'N'"),
        ("a\n_\n0\n0\nx a 1 a R\n", 5, "current state 'x'"),
        ("a\n_\n0\n0\n0 a y a R\n", 5, "next state 'y'"),
        ("a\n_\n0\n0\n0 b 1 a R\n", 5, "head symbol 'b' doesn't exist"),
        ("a\n_\n0\n0\n0 aa 1 a R\n", 5, "head symbol 'aa'"),
        ("a\n_\n0\n0\n# c\n\n0 a 1 a R\n0 a 2 _ L\n", 8, "already defined on line 7"),
    ],
)
def test_errors_report_line(text: str, line: int, message: str):
    with pytest.raises(DescriptionError) as info:
        parse_description(text)
    assert info.value.line == line
    assert message in info.value.message
    assert str(info.value).startswith(f"line {line}: ")


def test_description_error_is_definition_error():
    with pytest.raises(DefinitionError):
        parse_description("a\n_\n0\n0\n0 a 1 a R\n0 a 1 a R\n")
    with pytest.raises(ValueError):
        parse_description("")


def test_load_description(tmp_path: Path):
    path = tmp_path / "swap.TM"
    path.write_text(SWAP, encoding="utf-8")
    assert load_description(path) == parse_description(SWAP)


def test_bundled_machines():
    assert {"swap", "invert", "increment", "empty"} <= set(bundled_names())
    for name in bundled_names():
        assert isinstance(bundled(name), MachineDefinition)
    assert bundled("swap") == parse_description(SWAP)
    assert bundled("swap") is bundled("swap")


def test_unknown_bundled_machine():
    with pytest.raises(FileNotFoundError):
        bundled("does-not-exist")


@pytest.mark.parametrize(
    ("name", "input", "accepted", "output"),
    [
        ("invert", "0110", True, "1001_"),
        ("increment", "1011", True, "1100_"),
        ("increment", "111", True, "1000_"),
        ("increment", "", True, "1_"),
        ("empty", "", False, ""),
    ],
)
def test_bundled_runs(name: str, input: str, accepted: bool, output: str):
    tm = Machine(bundled(name))
    assert tm.run(parse_input(tm.definition, input)) is accepted
    assert "".join(tm.tape.contents()) == output


def test_parse_input(swap: MachineDefinition):
    assert parse_input(swap, "test") == ["t", "e", "s", "t"]
    assert parse_input(swap, "") == []
    assert parse_input(swap, "nic_") == ["n", "i", "c", "_"]


def test_parse_input_unknown_symbols(swap: MachineDefinition):
    with pytest.raises(InputError, match="x, y, z"):
        parse_input(swap, "xyzt")


def test_split_inputs():
    assert split_inputs(["test\n", "nice\r\n", "\n", "xyz"]) == ["test", "nice", "", "xyz"]
    assert split_inputs([]) == [""]
