from .avatar import AvatarImage

__all__ = ["AvatarImage"]
