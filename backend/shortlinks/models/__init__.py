from .link import Link
from .user import User
from .click import Click

__all__ = ["Link", "User", "Click"]
