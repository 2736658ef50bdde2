import bcrypt
from flask import current_app

from models.db import db, generate_uuid, utcnow, iso


class AdminUser(db.Model):
    __tablename__ = "admin_users"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)

    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def set_password(self, plain_password: str) -> None:
        if not isinstance(plain_password, str) or not plain_password:
            raise ValueError("Password must be a non-empty string")
        hashed = bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12)))
        self.password_hash = hashed.decode("utf-8")

    def check_password(self, plain_password: str) -> bool:
        if not plain_password or not self.password_hash:
            return False
        try:
            return bcrypt.checkpw(plain_password.encode("utf-8"), self.password_hash.encode("utf-8"))
        except ValueError:
            # malformed stored hash
            return False

    def to_dict(self):
        # never expose password_hash
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "created_at": iso(self.created_at),
        }
