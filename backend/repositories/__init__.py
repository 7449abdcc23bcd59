from .boards import BoardsRepository
from . import models

__all__ = ["BoardsRepository", "models"]
