# app/infrastructure/database/repository.py
from typing import List, Sequence

from sqlalchemy import delete, func, select

from app.config.logger import get_logger
from app.delivery.schemas.card import CardElement, CardTemplate
from app.infrastructure.database.models import IdCardTemplate

logger = get_logger(__name__, tag="DB")


def to_row_values(template: CardTemplate) -> dict:
    return {
        "name": template.name,
        "width": template.width_px,
        "height": template.height_px,
        "orientation": template.orientation,
        "front_background": template.front_background,
        "back_background": template.back_background,
        "elements_json": [el.to_json_dict() for el in template.elements],
    }


def from_row(row: IdCardTemplate) -> CardTemplate:
    return CardTemplate(
        id=row.id,
        name=row.name,
        width_px=row.width,
        height_px=row.height,
        orientation=row.orientation,
        front_background=row.front_background or "#ffffff",
        back_background=row.back_background or "#f3f4f6",
        elements=tuple(CardElement.model_validate(el) for el in (row.elements_json or [])),
    )


class TemplateRepository:
    """save()/load() against id_card_templates.

    ``save_all`` receives the whole collection: rows are upserted by id and
    rows missing from the collection are deleted, in one transaction.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def save_all(self, templates: Sequence[CardTemplate]) -> int:
        ids = [template.id for template in templates]
        async with self.session_factory() as session:
            async with session.begin():
                removed = (await session.execute(
                    delete(IdCardTemplate).where(IdCardTemplate.id.not_in(ids))
                )).rowcount
                if removed:
                    logger.info(f"Deleted {removed} template(s) no longer in the collection.")
                next_position = (await session.execute(
                    select(func.coalesce(func.max(IdCardTemplate.position), -1))
                )).scalar_one() + 1
                for template in templates:
                    row = await session.get(IdCardTemplate, template.id)
                    values = to_row_values(template)
                    if row is None:
                        session.add(IdCardTemplate(id=template.id, position=next_position, **values))
                        next_position += 1
                    else:
                        for key, value in values.items():
                            setattr(row, key, value)
        logger.info(f"Saved {len(templates)} template(s).")
        return len(templates)

    async def load_all(self) -> List[CardTemplate]:
        async with self.session_factory() as session:
            rows = (await session.execute(
                select(IdCardTemplate).order_by(IdCardTemplate.position, IdCardTemplate.id)
            )).scalars().all()
        templates = []
        for row in rows:
            try:
                templates.append(from_row(row))
            except ValueError as e:
                logger.warning(f"Skipping unreadable template {row.id}: {e}")
        return templates
