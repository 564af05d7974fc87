from enum import IntEnum


class Role(IntEnum):
    UNAUTHORIZED = 0
    PARENT = 1
    STAFF = 2
    SERVICE_MANAGER = 3
    DIRECTOR = 4
    ROOT = 10


MANAGER_ROLES = (Role.DIRECTOR, Role.SERVICE_MANAGER)

roles = {
    Role.UNAUTHORIZED: {"name": "Unauthorized", "emoji": ""},
    Role.PARENT: {"name": "Parent", "emoji": "👪"},
    Role.STAFF: {"name": "Educator", "emoji": "🧑‍🏫"},
    Role.SERVICE_MANAGER: {"name": "Service manager", "emoji": "📋"},
    Role.DIRECTOR: {"name": "Director", "emoji": "👑"},
    Role.ROOT: {"name": "root", "emoji": "⚡"},
}
