"""Yes/no confirmation points for maclean."""

from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from maclean.display import console as default_console
from maclean.models import ConfirmationOutcome

AFFIRMATIVE = {"y", "yes"}
NEGATIVE = {"n", "no"}


def classify_answer(answer: str) -> ConfirmationOutcome:
    """Reduce one line of user input to a confirmation outcome."""
    answer = answer.strip().lower()
    if not answer:
        return ConfirmationOutcome.EMPTY_DEFAULTED
    if answer in AFFIRMATIVE:
        return ConfirmationOutcome.USER_ACCEPTED
    if answer in NEGATIVE:
        return ConfirmationOutcome.USER_DECLINED
    return ConfirmationOutcome.INVALID_DEFAULTED


def confirm(
    prompt: str,
    auto_yes: bool = False,
    console: Optional[Console] = None,
    read_line: Optional[Callable[[str], str]] = None,
) -> ConfirmationOutcome:
    """
    Ask a yes/no question, defaulting to No.

    Reads exactly one line; there is no re-prompt. End of input counts as
    an empty answer.

    Args:
        prompt: Question to show
        auto_yes: Accept without asking
        console: Console used for the prompt and notices
        read_line: Input function, defaults to the console's

    Returns:
        ConfirmationOutcome
    """
    if auto_yes:
        return ConfirmationOutcome.AUTO_ACCEPTED

    out = console or default_console
    reader = read_line or out.input

    try:
        answer = reader(f"[bold cyan]{escape(prompt)}[/bold cyan] [dim]\\[y/N][/dim] ")
    except EOFError:
        answer = ""

    outcome = classify_answer(answer)
    if outcome == ConfirmationOutcome.EMPTY_DEFAULTED:
        out.print("  (no input — defaulting to No)")
    elif outcome == ConfirmationOutcome.INVALID_DEFAULTED:
        out.print(f"  (unrecognized answer {escape(repr(answer.strip()))} — defaulting to No)")
    return outcome
