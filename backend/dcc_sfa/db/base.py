"""
Declarative base and the audit columns shared by business tables

Every business table carries:
- is_active ('Y'/'N') soft-delete flag
- createdate / createdby, updatedate / updatedby
- log_inst revision counter, bumped on every update
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class AuditMixin:
    is_active = Column(String(1), nullable=False, default="Y", index=True, comment="Y/N")
    createdate = Column(DateTime, default=datetime.utcnow)
    createdby = Column(Integer, nullable=False, default=1)
    updatedate = Column(DateTime)
    updatedby = Column(Integer)
    log_inst = Column(Integer, nullable=False, default=1, comment="Revision counter")
