from sqlalchemy import Column, DateTime, Float, Integer, JSON, String, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class IdCardTemplate(Base):
    __tablename__ = "id_card_templates"

    id = Column(String(64), primary_key=True)
    name = Column(String, nullable=False)
    width = Column(Float, nullable=False)
    height = Column(Float, nullable=False)
    orientation = Column(String(16), nullable=False, default="landscape")
    front_background = Column(String)
    back_background = Column(String)
    elements_json = Column(JSON, nullable=False, default=list)  # Element list, camelCase as the UI sends it
    position = Column(Integer, nullable=False, default=0)       # keeps listing in insertion order
    update_time = Column(DateTime, server_default=func.now(), onupdate=func.now())
