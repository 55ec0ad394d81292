# app/domain/template_store.py
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type

from pydantic import BaseModel

from app.config.logger import get_logger
from app.delivery.schemas.card import CardElement, CardTemplate
from app.domain.catalog import new_element, new_id
from app.domain.errors import NotFound

logger = get_logger(__name__)

TEMPLATE_DEFAULTS: Dict[str, Any] = {
    "name": "Novo Modelo Personalizado",
    "width_px": 340,
    "height_px": 215,
    "orientation": "landscape",
    "front_background": "#ffffff",
    "back_background": "#f3f4f6",
}


def normalize_keys(changes: Mapping[str, Any], model: Type[BaseModel]) -> Dict[str, Any]:
    """Map camelCase aliases onto field names so merges never carry both spellings."""
    by_alias = {(info.alias or name): name for name, info in model.model_fields.items()}
    out: Dict[str, Any] = {}
    for key, value in changes.items():
        if key in model.model_fields:
            out[key] = value
        elif key in by_alias:
            out[by_alias[key]] = value
    return out


class TemplateStore:
    """In-memory, insertion-ordered template collection.

    Templates and elements are immutable values: every mutation swaps in a new
    template object and clears the ``saved`` flag so the UI knows there are
    unsaved changes.
    """

    def __init__(self, templates: Iterable[CardTemplate] = (), id_factory: Callable[[str], str] = new_id):
        self._templates: Dict[str, CardTemplate] = {}
        self._id_factory = id_factory
        self.active_template_id: Optional[str] = None
        self.saved = False
        for template in templates:
            self._templates[template.id] = template

    def next_id(self, prefix: str) -> str:
        return self._id_factory(prefix)

    def mark_saved(self) -> None:
        self.saved = True

    def _put(self, template: CardTemplate) -> CardTemplate:
        self._templates[template.id] = template
        self.saved = False
        return template

    # --- templates ---

    def list_templates(self) -> List[CardTemplate]:
        return list(self._templates.values())

    def get_template(self, template_id: str) -> CardTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise NotFound("template", template_id)
        return template

    def create_template(self, seed_defaults: Optional[Mapping[str, Any]] = None) -> CardTemplate:
        data = {**TEMPLATE_DEFAULTS, **normalize_keys(seed_defaults or {}, CardTemplate)}
        data["id"] = self.next_id("tpl")
        if "elements" not in data:
            data["elements"] = [
                new_element("text-dynamic", "front", element_id=self.next_id("el"), label="Nome", x=10.0, y=10.0)
            ]
        template = self._put(CardTemplate.model_validate(data))
        self.active_template_id = template.id
        logger.info(f"Template {template.id} created ({template.name}).")
        return template

    def update_template(self, template_id: str, partial_fields: Mapping[str, Any]) -> CardTemplate:
        current = self.get_template(template_id)
        changes = normalize_keys(partial_fields, CardTemplate)
        changes.pop("id", None)
        merged = {**current.model_dump(), **changes}
        return self._put(CardTemplate.model_validate(merged))

    def delete_template(self, template_id: str) -> None:
        self.get_template(template_id)
        del self._templates[template_id]
        if self.active_template_id == template_id:
            self.active_template_id = None
        self.saved = False

    def replace_all(self, templates: Iterable[CardTemplate]) -> None:
        self._templates = {t.id: t for t in templates}
        if self.active_template_id not in self._templates:
            self.active_template_id = None

    # --- elements ---

    def get_element(self, template_id: str, element_id: str) -> CardElement:
        element = self.get_template(template_id).find_element(element_id)
        if element is None:
            raise NotFound("element", element_id)
        return element

    def add_element(self, template_id: str, element: CardElement) -> CardTemplate:
        template = self.get_template(template_id)
        return self.update_template(template_id, {"elements": [*template.elements, element]})

    def replace_element(self, template_id: str, element: CardElement) -> CardTemplate:
        template = self.get_template(template_id)
        if template.find_element(element.id) is None:
            raise NotFound("element", element.id)
        elements = [element if el.id == element.id else el for el in template.elements]
        return self.update_template(template_id, {"elements": elements})

    def update_element(self, template_id: str, element_id: str, changes: Mapping[str, Any]) -> CardElement:
        current = self.get_element(template_id, element_id)
        changes = normalize_keys(changes, CardElement)
        changes.pop("id", None)
        style = changes.pop("style", None)
        data = {**current.model_dump(), **changes}
        if style is not None:
            style_changes = style if isinstance(style, Mapping) else style.css()
            data["style"] = current.style.merged(dict(style_changes))
        updated = CardElement.model_validate(data)
        self.replace_element(template_id, updated)
        return updated

    def remove_element(self, template_id: str, element_id: str) -> CardTemplate:
        template = self.get_template(template_id)
        if template.find_element(element_id) is None:
            raise NotFound("element", element_id)
        return self.update_template(
            template_id, {"elements": [el for el in template.elements if el.id != element_id]}
        )

    def move_element(self, template_id: str, element_id: str, direction: str) -> CardTemplate:
        """Shift an element one step in paint order ("up" paints later)."""
        template = self.get_template(template_id)
        elements = list(template.elements)
        index = next((i for i, el in enumerate(elements) if el.id == element_id), None)
        if index is None:
            raise NotFound("element", element_id)
        if direction == "up" and index < len(elements) - 1:
            elements[index], elements[index + 1] = elements[index + 1], elements[index]
        elif direction == "down" and index > 0:
            elements[index], elements[index - 1] = elements[index - 1], elements[index]
        elif direction not in ("up", "down"):
            raise ValueError(f"Unknown direction: {direction!r}")
        return self.update_template(template_id, {"elements": elements})
