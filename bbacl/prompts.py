"""Interactive selection prompts for the CLI.

Options are printed as a numbered list and picked by typing indices, ranges,
``all`` or ``none``.
"""

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from bbacl.operation import Operation
from bbacl.types.permissions import Permission, PermissionType

SELECT_HINT = "Select (e.g. 1,3-5 | all | none)"


def parse_selection(answer: str, count: int) -> list[int]:
    """
    Parse a selection answer into sorted, zero-based indices.

    Accepts comma or space separated 1-based indices and ranges
    (``1,3-5``), ``all`` and ``none``.

    Raises:
        ValueError: If the answer is not a valid selection
    """
    answer = answer.strip().lower()
    if answer in ("", "none"):
        return []
    if answer == "all":
        return list(range(count))

    selected: set[int] = set()
    for token in answer.replace(",", " ").split():
        start_text, sep, end_text = token.partition("-")
        start = int(start_text)
        end = int(end_text) if sep else start
        if start > end:
            raise ValueError(f"Invalid range: {token}")
        for number in range(start, end + 1):
            if not 1 <= number <= count:
                raise ValueError(f"Out of range: {number} (1-{count})")
            selected.add(number - 1)
    return sorted(selected)


def select_many(console: Console, message: str, options: Sequence[str]) -> list[int]:
    """Ask the user to pick any number of options; returns zero-based indices."""
    console.print(f"[bold]{escape(message)}[/bold]")
    for number, option in enumerate(options, 1):
        console.print(f"  [cyan]\\[{number}][/cyan] {escape(option)}")

    while True:
        answer = Prompt.ask(SELECT_HINT, default="none", console=console)
        try:
            return parse_selection(answer, len(options))
        except ValueError as e:
            console.print(f"[red]{escape(str(e))}[/red]")


def select_operations(console: Console, operations: Sequence[Operation]) -> list[Operation]:
    """Pick operations to apply. No-op operations are never offered."""
    candidates = [o for o in operations if not o.is_same]
    if not candidates:
        return []
    indices = select_many(console, "Choose operations:", [o.message() for o in candidates])
    return [candidates[i] for i in indices]


def select_permissions(console: Console, permissions: Sequence[Permission]) -> list[Permission]:
    """Pick existing permissions."""
    options = [
        f"{p.object_type.value} {p.object_name} ({p.permission.value.upper()})"
        for p in permissions
    ]
    indices = select_many(console, "Choose permissions:", options)
    return [permissions[i] for i in indices]


def ask_action(console: Console) -> str:
    """Ask whether to update or remove the chosen permissions."""
    return Prompt.ask("Operation", choices=["update", "remove"], console=console)


def ask_permission_type(console: Console) -> PermissionType:
    """Ask for a permission level."""
    answer = Prompt.ask(
        "Permission",
        choices=[p.value for p in PermissionType],
        console=console,
    )
    return PermissionType(answer)
