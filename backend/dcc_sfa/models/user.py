"""
Users, roles, permissions and API tokens

- Role → RolePermission → Permission ("module_action" names, e.g. depot_read)
- User belongs to a role and optionally to a company / depot / zone
- ApiToken is the bearer credential checked on every request
"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class Role(AuditMixin, Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text)

    role_permissions = relationship(
        "RolePermission",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def permission_names(self) -> list:
        """Names of the active permissions granted to this role"""
        return [
            rp.permission.name
            for rp in self.role_permissions
            if rp.is_active == "Y" and rp.permission and rp.permission.is_active == "Y"
        ]


class Permission(AuditMixin, Base):
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, comment="module_action")
    module = Column(String(50), nullable=False)
    action = Column(String(20), nullable=False)
    description = Column(String(255))


class RolePermission(AuditMixin, Base):
    __tablename__ = "role_permissions"

    id = Column(Integer, primary_key=True, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    permission_id = Column(Integer, ForeignKey("permissions.id"), nullable=False)

    role = relationship("Role", back_populates="role_permissions")
    permission = relationship("Permission", lazy="selectin")


class User(AuditMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    phone_number = Column(String(20))
    address = Column(Text)
    employee_id = Column(String(50))
    joining_date = Column(DateTime)
    profile_image = Column(String(500))
    last_login = Column(DateTime)

    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    parent_id = Column(Integer, ForeignKey("companies.id"), comment="Company")
    depot_id = Column(Integer, ForeignKey("depots.id"))
    zone_id = Column(Integer, ForeignKey("zones.id"))
    reporting_to = Column(Integer, ForeignKey("users.id"))

    role = relationship("Role", lazy="selectin")
    company = relationship("Company", lazy="selectin")
    depot = relationship("Depot", foreign_keys=[depot_id], lazy="selectin")
    zone = relationship("Zone", foreign_keys=[zone_id], lazy="selectin")


class ApiToken(AuditMixin, Base):
    __tablename__ = "api_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    token = Column(String(500), nullable=False, unique=True, index=True)
    issued_at = Column(DateTime, default=datetime.utcnow)
    expires_at = Column(DateTime)
    is_revoked = Column(Boolean, default=False)
    device_id = Column(String(255))
    ip_address = Column(String(50))
    last_used_at = Column(DateTime)

    user = relationship("User", lazy="selectin")
