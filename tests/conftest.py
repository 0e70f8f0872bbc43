import pytest

from tmsim.turing_machine import Direction, MachineDefinition

L, R = Direction.L, Direction.R

SWAP_RULES = [
    (1, "t", 2, "n", R),
    (2, "e", 3, "i", R),
    (3, "s", 4, "c", R),
    (4, "t", 8, "e", L),
    (8, "c", 0, "c", R),
    (1, "n", 5, "t", R),
    (5, "i", 6, "e", R),
    (6, "c", 7, "s", R),
    (7, "e", 9, "t", L),
    (9, "s", 0, "s", R),
]


@pytest.fixture
def swap_rules() -> list[tuple[int, str, int, str, Direction]]:
    return list(SWAP_RULES)


@pytest.fixture
def swap() -> MachineDefinition:
    return MachineDefinition(
        alphabet=frozenset("tesni"),
        blank="_",
        accepting=frozenset({0}),
        initial=1,
        transitions=SWAP_RULES,
    )
