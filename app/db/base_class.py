# db/base_class.py
from sqlalchemy.orm import as_declarative, declared_attr
from datetime import datetime
from sqlalchemy import Column, DateTime

@as_declarative()
class Base:
    __name__: str

    # Tables not naming themselves get the lowercase class name
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

    # Audit timestamps shared by every table
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
