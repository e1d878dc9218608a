## Declarative base for all tables
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
