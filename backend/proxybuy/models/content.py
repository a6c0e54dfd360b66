from __future__ import annotations

from ..extensions import db
from .base import new_id
from proxybuy.time_utils import to_utc_z, utcnow


class HeroContent(db.Model):
    """Landing page hero slides, shown in display_order."""
    __tablename__ = "hero_content"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(255), nullable=False)
    subtitle = db.Column(db.Text, nullable=True)
    image_path = db.Column(db.String(255), nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "image_path": self.image_path,
            "display_order": self.display_order,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class AboutUs(db.Model):
    """Single-row About Us section."""
    __tablename__ = "about_us"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    image_path = db.Column(db.String(255), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "image_path": self.image_path,
            "updated_at": to_utc_z(self.updated_at),
        }


class Company(db.Model):
    """Partner marketplaces shown on the landing page (Taobao, 1688, ...)."""
    __tablename__ = "companies"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(120), nullable=False)
    logo_path = db.Column(db.String(255), nullable=True)
    website_url = db.Column(db.String(2048), nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "logo_path": self.logo_path,
            "website_url": self.website_url,
            "display_order": self.display_order,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class SocialMediaLink(db.Model):
    __tablename__ = "social_media_links"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    platform = db.Column(db.String(64), nullable=False)
    url = db.Column(db.String(2048), nullable=False)
    icon_path = db.Column(db.String(255), nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "platform": self.platform,
            "url": self.url,
            "icon_path": self.icon_path,
            "display_order": self.display_order,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class TermsPolicy(db.Model):
    """Terms of service / privacy policy text, one row per type."""
    __tablename__ = "terms_policy"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    type = db.Column(db.String(32), nullable=False, unique=True)  # terms, privacy
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "content": self.content,
            "updated_at": to_utc_z(self.updated_at),
        }
