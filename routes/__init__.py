"""
TidyUp API Route Blueprints
"""
from .cleaning_requests import cleaning_requests_bp
from .feed import feed_bp
from .admin import admin_bp
from .cleaner_applications import cleaner_applications_bp
from .profile import profile_bp

__all__ = [
    "cleaning_requests_bp",
    "feed_bp",
    "admin_bp",
    "cleaner_applications_bp",
    "profile_bp",
]
