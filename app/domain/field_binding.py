# app/domain/field_binding.py
"""Resolves element field bindings against the user and branding records.

A binding is either ``system.<prop>`` (branding record) or a bare property of
the user being rendered. Lookups go through explicit tables built from the
records; anything missing or malformed resolves to an empty string so a card
with incomplete data still renders.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Union

from app.config.logger import get_logger
from app.config.settings import settings
from app.delivery.schemas.card import BrandingRecord, UserRecord
from app.domain.errors import InvalidField

logger = get_logger(__name__)

SYSTEM_PREFIX = "system."
AVATAR_FIELD = "avatarUrl"


@dataclass(frozen=True)
class SystemField:
    name: str


@dataclass(frozen=True)
class UserField:
    name: str


FieldReference = Union[SystemField, UserField]


@dataclass(frozen=True)
class ImageBinding:
    src: str
    placeholder: str  # "avatar" or "logo"; used when src is empty

    @property
    def has_image(self) -> bool:
        return bool(self.src)


def parse_field(field: Optional[str]) -> FieldReference:
    raw = (field or "").strip()
    if not raw:
        raise InvalidField(field or "", "empty field reference")
    if raw.startswith(SYSTEM_PREFIX):
        name = raw[len(SYSTEM_PREFIX):]
        if not name or "." in name:
            raise InvalidField(raw)
        return SystemField(name)
    if "." in raw or any(ch.isspace() for ch in raw):
        raise InvalidField(raw)
    return UserField(raw)


def _system_table(system: BrandingRecord) -> Dict[str, Callable[[], Any]]:
    data = system.as_lookup()
    table: Dict[str, Callable[[], Any]] = {key: (lambda k=key: data.get(k)) for key in data}
    # Templates bind the logo as "system.logo"
    table["logo"] = lambda: data.get("logoUrl")
    return table


def format_date(raw: Any, fmt: str = None) -> str:
    fmt = fmt or settings.DATE_FORMAT
    if isinstance(raw, (date, datetime)):
        return raw.strftime(fmt)
    text = str(raw).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparsable date value {text!r}, rendering verbatim.")
        return text
    return parsed.strftime(fmt)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Sim" if value else "Não"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def resolve_reference(ref: FieldReference, user: UserRecord, system: BrandingRecord) -> str:
    if isinstance(ref, SystemField):
        getter = _system_table(system).get(ref.name)
        return _stringify(getter()) if getter else ""
    value = user.as_lookup().get(ref.name)
    if value is None or value == "":
        return ""
    if "Date" in ref.name:
        return format_date(value)
    return _stringify(value)


def resolve(field: Optional[str], user: UserRecord, system: BrandingRecord) -> str:
    try:
        ref = parse_field(field)
    except InvalidField as e:
        logger.debug(f"{e}; rendering empty content.")
        return ""
    return resolve_reference(ref, user, system)


def resolve_image(field: Optional[str], user: UserRecord, system: BrandingRecord) -> ImageBinding:
    try:
        ref = parse_field(field)
    except InvalidField:
        return ImageBinding(src="", placeholder="logo")
    placeholder = "logo" if isinstance(ref, SystemField) else "avatar"
    return ImageBinding(src=resolve_reference(ref, user, system), placeholder=placeholder)
