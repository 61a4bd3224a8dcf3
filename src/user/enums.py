from enum import StrEnum


class UserRole(StrEnum):
    ADMIN = "admin"  # Manages accounts and every record
    EDITOR = "editor"  # Edits personnel records
    VIEWER = "viewer"  # Read-only access

    @classmethod
    def values(cls) -> set[str]:
        return {item.value for item in cls.__members__.values()}
