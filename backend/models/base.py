"""
SQLAlchemy基础配置
"""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
