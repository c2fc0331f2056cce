from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import validates

from models.base_model import Base, BaseModel
from utils.security import verify_password


class User(BaseModel, Base):
    __tablename__ = "users"
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    activated = Column(Boolean, nullable=False, default=False)
    # jti of the one refresh token currently allowed for this user
    refresh_session_id = Column(String(64), nullable=True)

    @validates("email")
    def normalize_email(self, key, value):
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def authenticate(self, password: str) -> bool:
        return verify_password(password, self.password_hash)

    def __repr__(self):
        return f"<User {self.id} {self.email}>"
