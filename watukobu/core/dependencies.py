"""
Service factories for FastAPI dependency injection.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from watukobu.database import get_db
from watukobu.services.asset_service import AssetService
from watukobu.services.assignment_service import AssignmentService
from watukobu.services.dashboard_service import DashboardService
from watukobu.services.document_service import DocumentService
from watukobu.services.user_service import UserService
from watukobu.services.validation_service import ValidationService


def get_asset_service(db: Session = Depends(get_db)) -> AssetService:
    return AssetService(db)


def get_assignment_service(db: Session = Depends(get_db)) -> AssignmentService:
    return AssignmentService(db)


def get_validation_service(db: Session = Depends(get_db)) -> ValidationService:
    return ValidationService(db)


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)
