from .users import UsersRepository
from .bookmarks import BookmarksRepository
from . import models

__all__ = ["UsersRepository", "BookmarksRepository", "models"]
