"""Users module — admin accounts (read-only here)."""

from mawaqit.users.models import Role, User

__all__ = ["Role", "User"]
