"""
TidyUp SQLAlchemy Models
Accounts, cleaning requests, and cleaner applications for the cleaning marketplace.
"""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import (
    Column, String, Float, Integer, Text, DateTime, ForeignKey, JSON,
    CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()

DEFAULT_NOTES = "No additional notes"

ROLE_USER = "user"
ROLE_CLEANER = "cleaner"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_CLEANER, ROLE_ADMIN)

APPLICATION_PENDING = "pending"
APPLICATION_APPROVED = "Approved"
APPLICATION_REJECTED = "Rejected"


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(db.Model):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    profile_picture_url = Column(Text, nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_USER)
    status = Column(String(20), nullable=False, default="unverified")

    # Aggregate of ratings received as a cleaner
    total_points = Column(Integer, nullable=False, default=0)
    total_ratings = Column(Integer, nullable=False, default=0)
    average = Column(Float, nullable=False, default=0.0)

    email_verified_at = Column(DateTime, nullable=True)
    custom_claims = Column(JSON, nullable=False, default=dict)
    token_version = Column(Integer, nullable=False, default=0)
    location = Column(JSON, nullable=True)  # {address, latitude, longitude}

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    requests = relationship(
        "CleaningRequest", foreign_keys="CleaningRequest.user_id",
        back_populates="owner", lazy="dynamic", cascade="all, delete-orphan",
    )
    applications = relationship("CleanerApplication", back_populates="user", lazy="dynamic",
                                cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_users_role", "role"),
    )

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def email_verified(self):
        return self.email_verified_at is not None

    def has_admin_claim(self):
        return bool((self.custom_claims or {}).get("admin"))

    def to_dict(self):
        return {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "profilePictureUrl": self.profile_picture_url,
            "role": self.role,
            "status": self.status,
            "emailVerified": self.email_verified,
            "totalPoints": self.total_points,
            "totalRatings": self.total_ratings,
            "average": self.average,
            "location": self.location,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def public_dict(self):
        """Contact card shown to the other side of a request."""
        return {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "profilePictureUrl": self.profile_picture_url,
            "average": self.average,
            "totalRatings": self.total_ratings,
        }


# ---------------------------------------------------------------------------
# CleaningRequest
# ---------------------------------------------------------------------------
class CleaningRequest(db.Model):
    __tablename__ = "cleaning_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_email = Column(String(255), nullable=False)

    location = Column(Text, nullable=False)
    date = Column(String(10), nullable=False)   # YYYY-MM-DD
    time = Column(String(8), nullable=False)    # hh:mm AM/PM
    additional_notes = Column(Text, nullable=False, default=DEFAULT_NOTES)

    status = Column(String(20), nullable=False, default="pending")
    cleaner_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    cleaner_email = Column(String(255), nullable=True)
    rating = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("User", foreign_keys=[user_id], back_populates="requests")
    cleaner = relationship("User", foreign_keys=[cleaner_id])

    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_request_rating"),
        Index("idx_requests_status", "status"),
        Index("idx_requests_user", "user_id"),
        Index("idx_requests_cleaner", "cleaner_id"),
    )

    def __repr__(self):
        return f"<CleaningRequest {self.id} - {self.status}>"

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "userEmail": self.user_email,
            "location": self.location,
            "date": self.date,
            "time": self.time,
            "additionalNotes": self.additional_notes,
            "status": self.status,
            "cleanerId": self.cleaner_id,
            "cleanerEmail": self.cleaner_email,
            "rating": self.rating,
            "timestamp": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


# ---------------------------------------------------------------------------
# CleanerApplication
# ---------------------------------------------------------------------------
class CleanerApplication(db.Model):
    __tablename__ = "cleaner_applications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    profile_picture_url = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=APPLICATION_PENDING)

    applied_at = Column(DateTime, default=utcnow)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(36), nullable=True)

    user = relationship("User", back_populates="applications")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "email": self.email,
            "fullName": self.full_name,
            "profilePictureUrl": self.profile_picture_url,
            "status": self.status,
            "appliedAt": _iso(self.applied_at),
            "reviewedAt": _iso(self.reviewed_at),
            "reviewedBy": self.reviewed_by,
        }
