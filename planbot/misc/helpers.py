"""Helper functions for the bot code."""

import shlex
from datetime import date, datetime
from typing import List, Optional

from planbot.misc.dicts import roles

strftime_date = "%d.%m.%Y"


def get_role(role_id: int = None, role_name: str = None, return_id: bool = False):
    """Gets role information.

    Args:
        role_id: Role identifier
        role_name: Role name
        return_id: Whether to return the identifier

    Returns:
        Role name and emoji, or the role identifier
    """
    if role_id is not None:
        return role_id if return_id else roles.get(role_id)

    if role_name is not None:
        for r_id, data in roles.items():
            if data["name"] == role_name:
                return int(r_id) if return_id else data

    return None


def short_name(full_name: str) -> str:
    """First name and initial of the last name.

    Args:
        full_name: "First Last"

    Returns:
        "First L."
    """
    parts = full_name.split()
    if len(parts) >= 2:
        return f"{parts[0]} {parts[-1][0]}."
    return full_name.strip()


def parse_date(text: str) -> Optional[date]:
    """Parses a dd.mm.yyyy or yyyy-mm-dd date.

    Args:
        text: User input

    Returns:
        Parsed date or None
    """
    for fmt in (strftime_date, "%Y-%m-%d"):
        try:
            return datetime.strptime(text.strip(), fmt).date()
        except ValueError:
            continue
    return None


def command_args(text: Optional[str]) -> List[str]:
    """Arguments of a command message, quoted values kept together."""
    if not text:
        return []
    try:
        return shlex.split(text)[1:]
    except ValueError:
        return text.split()[1:]


def int_args(text: Optional[str]) -> Optional[List[int]]:
    """Integer arguments of a command, None if one of them is not a number."""
    try:
        return [int(arg) for arg in command_args(text)]
    except ValueError:
        return None
