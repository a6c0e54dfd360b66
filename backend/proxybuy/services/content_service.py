# Overview: Service-layer operations for landing-page content; public reads and super-admin upserts.

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import AboutUs, Company, HeroContent, SocialMediaLink, TermsPolicy
from ..validation import ModelValidationPolicy, is_valid_url, validate_payload
from .concurrency import run_in_transaction
from .permission_service import Principal, require_permission


POLICY_TYPES = ("terms", "privacy")

HERO_POLICY = ModelValidationPolicy(
    writable_fields={"title", "subtitle", "image_path", "display_order", "is_active"},
    required_on_create={"title"},
)

ABOUT_POLICY = ModelValidationPolicy(
    writable_fields={"title", "content", "image_path"},
    required_on_create={"title", "content"},
)

COMPANY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "logo_path", "website_url", "display_order", "is_active"},
    required_on_create={"name"},
)

SOCIAL_POLICY = ModelValidationPolicy(
    writable_fields={"platform", "url", "icon_path", "display_order", "is_active"},
    required_on_create={"platform", "url"},
)

TERMS_POLICY = ModelValidationPolicy(
    writable_fields={"title", "content"},
    required_on_create={"title", "content"},
)


def _active_ordered(model) -> list:
    return (
        db.session.query(model)
        .filter(model.is_active.is_(True))
        .order_by(model.display_order.asc(), model.created_at.asc())
        .all()
    )


def list_hero_content() -> list[HeroContent]:
    return _active_ordered(HeroContent)


def list_companies() -> list[Company]:
    return _active_ordered(Company)


def list_social_links() -> list[SocialMediaLink]:
    return _active_ordered(SocialMediaLink)


def get_about_us() -> AboutUs | None:
    return db.session.query(AboutUs).order_by(AboutUs.updated_at.desc()).first()


def get_terms_policy(policy_type: str) -> TermsPolicy:
    if policy_type not in POLICY_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(POLICY_TYPES)}", field="type")
    policy = db.session.query(TermsPolicy).filter_by(type=policy_type).first()
    if not policy:
        raise NotFoundError("Policy not found")
    return policy


def _upsert(model, policy: ModelValidationPolicy, payload: dict, *, check=None):
    """
    Update the row named by payload["id"], or insert a new one.

    Updates are partial; inserts enforce required_on_create.
    """
    data = dict(payload or {})
    record_id = data.pop("id", None)
    patch = validate_payload(model=model, payload=data, policy=policy, partial=bool(record_id))
    if check:
        check(patch)

    def _op():
        if record_id:
            record = db.session.get(model, record_id)
            if not record:
                raise NotFoundError(f"{model.__name__} not found")
            for key, value in patch.items():
                setattr(record, key, value)
        else:
            record = model(**patch)
            db.session.add(record)
        db.session.flush()
        return record

    return run_in_transaction(_op)


def _delete(model, record_id: str) -> None:
    def _op():
        record = db.session.get(model, record_id)
        if not record:
            raise NotFoundError(f"{model.__name__} not found")
        db.session.delete(record)

    run_in_transaction(_op)


def _check_url_field(field: str):
    def check(patch: dict) -> None:
        if patch.get(field) and not is_valid_url(patch[field]):
            raise ValidationError(f"{field} must be a valid URL", field=field)
    return check


def upsert_hero_content(principal: Principal, payload: dict) -> HeroContent:
    require_permission(principal, "MANAGE_CONTENT")
    return _upsert(HeroContent, HERO_POLICY, payload)


def delete_hero_content(principal: Principal, record_id: str) -> None:
    require_permission(principal, "MANAGE_CONTENT")
    _delete(HeroContent, record_id)


def upsert_company(principal: Principal, payload: dict) -> Company:
    require_permission(principal, "MANAGE_CONTENT")
    return _upsert(Company, COMPANY_POLICY, payload, check=_check_url_field("website_url"))


def delete_company(principal: Principal, record_id: str) -> None:
    require_permission(principal, "MANAGE_CONTENT")
    _delete(Company, record_id)


def upsert_social_link(principal: Principal, payload: dict) -> SocialMediaLink:
    require_permission(principal, "MANAGE_CONTENT")
    return _upsert(SocialMediaLink, SOCIAL_POLICY, payload, check=_check_url_field("url"))


def delete_social_link(principal: Principal, record_id: str) -> None:
    require_permission(principal, "MANAGE_CONTENT")
    _delete(SocialMediaLink, record_id)


def upsert_about_us(principal: Principal, payload: dict) -> AboutUs:
    """About Us is a single row: the first write inserts it, later writes update it."""
    require_permission(principal, "MANAGE_CONTENT")
    data = dict(payload or {})
    data.pop("id", None)
    existing = get_about_us()
    if existing:
        data["id"] = existing.id
    return _upsert(AboutUs, ABOUT_POLICY, data)


def upsert_terms_policy(principal: Principal, payload: dict) -> TermsPolicy:
    """Terms and privacy policies are keyed by type."""
    require_permission(principal, "MANAGE_CONTENT")
    data = dict(payload or {})
    data.pop("id", None)
    policy_type = data.pop("type", None)
    if policy_type not in POLICY_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(POLICY_TYPES)}", field="type")

    existing = db.session.query(TermsPolicy).filter_by(type=policy_type).first()
    if existing:
        data["id"] = existing.id
        return _upsert(TermsPolicy, TERMS_POLICY, data)

    patch = validate_payload(model=TermsPolicy, payload=data, policy=TERMS_POLICY, partial=False)

    def _op():
        record = TermsPolicy(type=policy_type, **patch)
        db.session.add(record)
        db.session.flush()
        return record

    return run_in_transaction(_op)
