"""
Landing-page content management and audit retention.
"""

from datetime import timedelta

import pytest

from proxybuy.errors import ForbiddenError, NotFoundError, ValidationError
from proxybuy.extensions import db
from proxybuy.models import AboutUs, SecurityEvent
from proxybuy.services import content_service, maintenance_service
from proxybuy.services.permission_service import log_security_event
from proxybuy.time_utils import utcnow

from conftest import principal_for


class TestContentWrites:
    """Super admins manage content; nobody else does."""

    def test_hero_insert_update_delete(self, super_admin):
        p = principal_for(super_admin)

        hero = content_service.upsert_hero_content(p, {"title": "Shop China", "display_order": 2})
        assert hero.is_active is True

        updated = content_service.upsert_hero_content(p, {"id": hero.id, "subtitle": "Delivered to Kigali"})
        assert updated.title == "Shop China"
        assert updated.subtitle == "Delivered to Kigali"

        content_service.delete_hero_content(p, hero.id)
        assert content_service.list_hero_content() == []

        with pytest.raises(NotFoundError):
            content_service.delete_hero_content(p, hero.id)

    def test_public_lists_are_active_and_ordered(self, super_admin):
        p = principal_for(super_admin)
        second = content_service.upsert_company(p, {"name": "Alibaba", "display_order": 2})
        first = content_service.upsert_company(p, {"name": "Taobao", "display_order": 1})
        content_service.upsert_company(p, {"name": "Hidden", "display_order": 0, "is_active": False})

        assert [c.id for c in content_service.list_companies()] == [first.id, second.id]

    def test_social_link_url_checked(self, super_admin):
        with pytest.raises(ValidationError) as exc:
            content_service.upsert_social_link(principal_for(super_admin), {"platform": "instagram", "url": "nope"})
        assert exc.value.field == "url"

    def test_about_us_is_single_row(self, super_admin):
        p = principal_for(super_admin)
        content_service.upsert_about_us(p, {"title": "About", "content": "We buy for you."})
        content_service.upsert_about_us(p, {"content": "We buy and ship for you."})

        assert db.session.query(AboutUs).count() == 1
        assert content_service.get_about_us().content == "We buy and ship for you."

    def test_terms_keyed_by_type(self, super_admin):
        p = principal_for(super_admin)
        content_service.upsert_terms_policy(p, {"type": "terms", "title": "Terms", "content": "v1"})
        content_service.upsert_terms_policy(p, {"type": "terms", "content": "v2"})

        assert content_service.get_terms_policy("terms").content == "v2"
        with pytest.raises(NotFoundError):
            content_service.get_terms_policy("privacy")
        with pytest.raises(ValidationError):
            content_service.get_terms_policy("cookies")

    @pytest.mark.parametrize("role", ["user", "employee", "admin"])
    def test_other_roles_forbidden(self, make_user, role):
        with pytest.raises(ForbiddenError):
            content_service.upsert_hero_content(principal_for(make_user(role)), {"title": "x"})


class TestSecurityEventRetention:
    """Old audit rows are purged; recent ones stay."""

    def test_cleanup(self, customer):
        old = log_security_event(customer.id, "LOGIN_FAILED", False)
        log_security_event(customer.id, "LOGIN_FAILED", False)
        old.occurred_at = utcnow() - timedelta(days=120)
        db.session.commit()

        assert maintenance_service.cleanup_security_events(retention_days=90) == 1
        assert db.session.query(SecurityEvent).count() == 1

    def test_retention_must_be_positive(self):
        with pytest.raises(ValueError):
            maintenance_service.cleanup_security_events(retention_days=0)
