"""Application dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from leasing_app.core.config import AppConfig, ensure_runtime_keys, get_required_env, load_config
from leasing_app.core.crypto import MetadataCipher
from leasing_app.core.logging import setup_logging
from leasing_app.integrations.billing import InMemoryBilling
from leasing_app.integrations.employee import StaticEmployeeDirectory
from leasing_app.integrations.inventory import InMemoryInventory
from leasing_app.integrations.notification import RecordingNotificationService
from leasing_app.repositories.agreement_repository import SqliteAgreementRepository
from leasing_app.repositories.audit_repository import AuditRepository, InMemoryAuditLog
from leasing_app.repositories.db_pool import ThreadLocalConnection
from leasing_app.repositories.memory_repository import InMemoryAgreementRepository
from leasing_app.repositories.schema import initialize_schema
from leasing_app.services.agreement_factory import AgreementFactory
from leasing_app.services.leasing_service import AuditLog, LeasingAgreementService
from leasing_app.services.ports import AgreementRepository
from leasing_app.services.pricing import PricingEngine
from leasing_app.services.schedule import PaymentScheduleGenerator
from leasing_app.services.transaction import AgreementTransaction


@dataclass
class ServiceContainer:
    """Wires repositories, collaborators and services."""

    config: AppConfig
    leasing_service: LeasingAgreementService
    repository: AgreementRepository
    audit_log: AuditLog
    inventory: InMemoryInventory
    billing: InMemoryBilling
    notifications: RecordingNotificationService
    employees: StaticEmployeeDirectory


def _build_storage(config: AppConfig) -> tuple[AgreementRepository, AuditLog]:
    if config.database.backend == "memory":
        return InMemoryAgreementRepository(), InMemoryAuditLog()

    ensure_runtime_keys(config.database.path)
    cipher = MetadataCipher.from_base64_key(get_required_env(config.encryption.key_env))
    pool = ThreadLocalConnection(config.database)
    initialize_schema(pool)
    return SqliteAgreementRepository(pool, cipher), AuditRepository(pool)


def build_container(config_path: Path | None = None) -> ServiceContainer:
    """Load configuration, set up logging and build the service graph."""
    config = load_config(config_path)
    setup_logging(config.logging.level, config.logging.format)

    repository, audit_log = _build_storage(config)
    inventory = InMemoryInventory(config.inventory_items)
    billing = InMemoryBilling()
    notifications = RecordingNotificationService()
    employees = StaticEmployeeDirectory(config.employees)

    pricing = PricingEngine(config.leasing)
    schedule_generator = PaymentScheduleGenerator()
    factory = AgreementFactory(employees, pricing, schedule_generator)
    transaction = AgreementTransaction(
        repository, inventory, billing, notifications, employees, config.leasing
    )

    return ServiceContainer(
        config=config,
        leasing_service=LeasingAgreementService(
            config=config.leasing,
            repository=repository,
            notifications=notifications,
            factory=factory,
            transaction=transaction,
            pricing=pricing,
            schedule_generator=schedule_generator,
            audit_log=audit_log,
        ),
        repository=repository,
        audit_log=audit_log,
        inventory=inventory,
        billing=billing,
        notifications=notifications,
        employees=employees,
    )
