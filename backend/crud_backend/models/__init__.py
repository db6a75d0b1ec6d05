"""Import all models so SQLAlchemy metadata knows about them."""
from crud_backend.models.base import Base
from crud_backend.models.user import User
from crud_backend.models.token import Token
from crud_backend.models.file_record import FileRecord

__all__ = ["Base", "User", "Token", "FileRecord"]
