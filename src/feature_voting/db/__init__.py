"""Database configuration and utilities."""

from .session import Base, SessionLocal, build_engine

__all__ = ["Base", "SessionLocal", "build_engine"]
