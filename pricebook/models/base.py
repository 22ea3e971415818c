"""
Declarative Base
"""
from sqlalchemy.orm import DeclarativeBase


# Base Class for ORM models
class Base(DeclarativeBase):
    pass
