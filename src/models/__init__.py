from .base import Base
from .track import TrackModel, TrackSubjectModel
from .user import UserModel

__all__ = ["Base", "TrackModel", "TrackSubjectModel", "UserModel"]
