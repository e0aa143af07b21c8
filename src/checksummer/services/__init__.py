"""
Service Layer - ScanService and ServicesContainer.
"""

from checksummer.services.container import ServicesContainer, create_services
from checksummer.services.scan_models import ScanResult
from checksummer.services.scan_service import ScanService

__all__ = [
    # Container and factory
    "ServicesContainer",
    "create_services",
    # Services
    "ScanService",
    "ScanResult",
]
