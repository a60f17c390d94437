"""String enums shared by the schema, API and web layers."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    STAFF = "STAFF"
    CONTRIBUTOR = "CONTRIBUTOR"


class DocumentType(str, Enum):
    POLICY = "POLICY"
    PROCEDURE = "PROCEDURE"
    MANUAL = "MANUAL"
    RECORD = "RECORD"
    TEMPLATE = "TEMPLATE"
    OTHER = "OTHER"


class StorageLocation(str, Enum):
    SHAREPOINT = "SHAREPOINT"
    CONFLUENCE = "CONFLUENCE"


class DocumentStatus(str, Enum):
    DRAFT = "DRAFT"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    SUPERSEDED = "SUPERSEDED"


class ReviewTaskStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"


class RiskStatus(str, Enum):
    DRAFT = "DRAFT"
    PROPOSED = "PROPOSED"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
    ARCHIVED = "ARCHIVED"


class Department(str, Enum):
    BUSINESS_STRATEGY = "BUSINESS_STRATEGY"
    FINANCE = "FINANCE"
    HR = "HR"
    OPERATIONS = "OPERATIONS"
    PRODUCT = "PRODUCT"
    MARKETING = "MARKETING"


MANAGEMENT_ROLES = frozenset({UserRole.ADMIN.value, UserRole.EDITOR.value})
