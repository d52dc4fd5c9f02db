from .connection import Base, SessionLocal, engine, init_db

__all__ = ["Base", "SessionLocal", "engine", "init_db"]
