"""Show model definition."""

from datetime import datetime

from . import db


class Show(db.Model):
    """Represents a show, optionally illustrated by an uploaded image."""

    __tablename__ = "shows"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(255), nullable=True)
    starts_at = db.Column(db.DateTime, nullable=True)
    image = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    def __repr__(self) -> str:
        return f"<Show id={self.id} title={self.title!r}>"

    def to_dict(self) -> dict:
        """Serialize the show into a dictionary."""

        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "starts_at": self.starts_at.isoformat() if self.starts_at else None,
            "image": self.image,
            "image_url": f"/uploads/{self.image}" if self.image else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
