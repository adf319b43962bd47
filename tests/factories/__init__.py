"""Test factories for management store rows."""

from .organizations import OrganizationRowFactory, UserOrganizationRowFactory

__all__ = [
    "OrganizationRowFactory",
    "UserOrganizationRowFactory",
]
