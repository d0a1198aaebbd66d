"""Interactive terminal prompts."""

import getpass
from typing import Callable, Optional, Tuple

InputFunc = Callable[[str], str]


def ask(question: str, input_func: InputFunc = input) -> str:
    return input_func(question).strip()


def confirm(question: str, input_func: InputFunc = input) -> bool:
    """Return True when the answer is ``y`` or ``yes`` (any case)."""
    return ask(question, input_func).lower() in ("y", "yes")


def ask_credentials(
    identifier: Optional[str] = None,
    password: Optional[str] = None,
    input_func: InputFunc = input,
    password_func: InputFunc = getpass.getpass,
) -> Tuple[str, str]:
    """Prompt only for the credentials that were not supplied."""
    if not identifier or not password:
        print("👤 Please log in to your Bluesky account:")
    if not identifier:
        identifier = ask("   Email or username: ", input_func)
    if not password:
        password = password_func("   Password (app password recommended): ")
    return identifier, password
