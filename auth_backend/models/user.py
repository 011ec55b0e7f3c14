# auth_backend/models/user.py
import sqlalchemy as sa
from auth_backend.utils.database import Base


class User(Base):
    __tablename__ = "users"
    id = sa.Column(sa.Integer, primary_key=True, autoincrement=True)
    email = sa.Column(sa.String(255), unique=True, nullable=False, index=True)
    # bcrypt hash; NULL for accounts created through Google
    password = sa.Column(sa.String(255), nullable=True)
    full_name = sa.Column(sa.String(255), nullable=True)
    created_at = sa.Column(sa.DateTime(timezone=True), server_default=sa.func.now())

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "created_at": self.created_at,
        }
