"""Declarative base of the logbook, pass and quality control models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
