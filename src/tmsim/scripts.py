import logging
import sys
from pathlib import Path
from typing import Annotated

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme
from typer import Argument, Exit, Option, Typer

from tmsim.description import (
    InputError,
    bundled,
    bundled_names,
    load_description,
    parse_input,
    split_inputs,
)
from tmsim.turing_machine import Configuration, DefinitionError, Machine, MachineDefinition

ACCEPT = 0
REJECT = 1
INVALID = 2

app = Typer(pretty_exceptions_show_locals=False, no_args_is_help=True)
theme = Theme({
    "success": "green",
    "warning": "orange3",
    "error": "red",
    "heading": "blue",
    "info": "dim cyan",
})
console = Console(theme=theme, soft_wrap=True)
err_console = Console(theme=theme, stderr=True, soft_wrap=True)

MachineArg = Annotated[
    str,
    Argument(help="Path to a machine description file, or the name of a bundled machine (see 'tmsim list')."),
]


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_machine(machine: str) -> MachineDefinition:
    path = Path(machine)
    try:
        if path.is_file():
            return load_description(path)
        elif machine in bundled_names():
            return bundled(machine)
        else:
            err_console.print(f"[error]Could not find a machine description at '{escape(machine)}'.")
    except DefinitionError as e:
        err_console.print(
            f"[error]The description of '{escape(machine)}' is formatted incorrectly:[/]\n{escape(str(e))}",
            highlight=False,
        )
    except OSError as e:
        err_console.print(f"[error]Could not read the description '{escape(machine)}':[/] {escape(str(e))}")
    raise Exit(INVALID)


def format_tape(symbols: list[str], blank: str) -> str:
    start, end = 0, len(symbols)
    while start < end and symbols[start] == blank:
        start += 1
    while end > start and symbols[end - 1] == blank:
        end -= 1
    return "".join(symbols[start:end])


def print_configuration(config: Configuration) -> None:
    err_console.print(config.pretty(), highlight=False)


@app.command()
def run(
    machine: MachineArg,
    input: Annotated[
        str | None,
        Argument(help="Input string to run the machine on. If omitted, every line of stdin is a separate input."),
    ] = None,
    *,
    trace: Annotated[
        bool,
        Option("--trace", "-t", envvar="TMSIM_TRACE", help="Print every configuration the machine passes through."),
    ] = False,
    quiet: Annotated[
        bool,
        Option("--quiet", "-q", envvar="TMSIM_QUIET", help="Do not print the tape after each run."),
    ] = False,
    verbose: Annotated[
        bool,
        Option("--verbose", "-v", envvar="TMSIM_VERBOSE", help="Log debug information about every run."),
    ] = False,
):
    """Run a Turing machine, exiting with 0 if it accepts every input and 1 otherwise."""
    setup_logging(verbose)
    definition = load_machine(machine)
    inputs = [input] if input is not None else split_inputs(sys.stdin)

    try:
        tapes = [parse_input(definition, text) for text in inputs]
    except InputError as e:
        err_console.print(f"[error]Invalid input:[/] {escape(str(e))}", highlight=False)
        raise Exit(INVALID) from e

    tm = Machine(definition)
    exit_code = ACCEPT
    for text, tape in zip(inputs, tapes, strict=True):
        if trace:
            err_console.print(f"[heading]Running on input '{escape(text)}':", highlight=False)
        accepted = tm.run(tape, trace=print_configuration if trace else None)
        if trace:
            status = "[success]accepted" if accepted else "[warning]rejected"
            err_console.print(f"{status}[/] in state {tm.state} after {tm.steps} steps.", highlight=False)
        if not quiet:
            console.print(
                format_tape(tm.tape.contents(), definition.blank),
                highlight=False,
                markup=False,
                emoji=False,
            )
        if not accepted:
            exit_code = REJECT
    raise Exit(exit_code)


@app.command()
def check(machine: MachineArg):
    """Validate a machine description and summarize it."""
    definition = load_machine(machine)
    accepting = ", ".join(map(str, sorted(definition.accepting))) or "none"
    alphabet = " ".join(sorted(definition.alphabet - {definition.blank}))
    console.print(f"[success]'{escape(machine)}' is a valid machine description.")
    console.print(f"alphabet:         {alphabet}", highlight=False, markup=False)
    console.print(f"blank:            {definition.blank}", highlight=False, markup=False)
    console.print(f"accepting states: {accepting}", highlight=False)
    console.print(f"initial state:    {definition.initial}", highlight=False)
    console.print(f"transitions:      {len(definition.transitions)}", highlight=False)


@app.command(name="list")
def list_machines():
    """List the bundled machines."""
    for name in bundled_names():
        console.print(name, highlight=False)


if __name__ == "__main__":
    app()
