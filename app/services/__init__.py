"""
TrackMyStartup - Services Package

Business logic services.
"""

from app.services.auth_service import AuthService
from app.services.cap_table_service import CapTableService
from app.services.email_service import EmailService
from app.services.employee_service import EmployeeService
from app.services.file_storage_service import FileStorageService
from app.services.financial_service import FinancialService
from app.services.startup_service import StartupService

__all__ = [
    "AuthService",
    "CapTableService",
    "EmailService",
    "EmployeeService",
    "FileStorageService",
    "FinancialService",
    "StartupService",
]
