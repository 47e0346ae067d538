"""
Dependency injection container for the money tracker.

This module wires configuration, credentials, the external clients and the
services into one place so entry points and tests can swap any piece.
"""

from dependency_injector import containers, providers

from .config import ConfigManager
from .credentials import CredentialsManager

# Import API clients
from .api import GeminiBackend, GoogleSheetsTable

# Import services
from .services import (
    CandidatePolicy,
    ExtractionParser,
    ExtractionService,
    LedgerService,
    TransactionService
)

from .telegram_bot import StoredFileRegistry, build_application
from .utils import CircuitBreaker


class Container(containers.DeclarativeContainer):
    """
    Centralized dependency injection container for the application.
    """
    # Core configuration
    config = providers.Singleton(ConfigManager)

    # Credentials management
    credentials_manager = providers.Singleton(
        CredentialsManager,
        config_manager=config
    )

    # One breaker per external collaborator
    gemini_circuit_breaker = providers.Singleton(
        CircuitBreaker,
        name="gemini",
        max_failures=config.provided.get.call('circuit_breaker.max_failures.gemini', 5),
        reset_timeout=config.provided.get.call('circuit_breaker.reset_timeout', 60),
        max_retries=config.provided.get.call('circuit_breaker.max_retries', 3)
    )

    ledger_circuit_breaker = providers.Singleton(
        CircuitBreaker,
        name="ledger",
        max_failures=config.provided.get.call('circuit_breaker.max_failures.ledger', 3),
        reset_timeout=config.provided.get.call('circuit_breaker.reset_timeout', 60),
        max_retries=config.provided.get.call('circuit_breaker.max_retries', 3)
    )

    # External clients
    extraction_backend = providers.Singleton(
        GeminiBackend,
        api_key=credentials_manager.provided.get_gemini_api_key.call(),
        model_name=config.provided.get.call('gemini.model', 'gemini-2.0-flash'),
        temperature=config.provided.get.call('gemini.temperature', 0.1),
        timeout=config.provided.get.call('timeouts.backend_seconds', 60),
        circuit_breaker=gemini_circuit_breaker
    )

    ledger_table = providers.Singleton(
        GoogleSheetsTable,
        spreadsheet_id=credentials_manager.provided.get_spreadsheet_id.call(),
        service_account_file=credentials_manager.provided.get_service_account_file.call(),
        timeout=config.provided.get.call('timeouts.ledger_seconds', 30)
    )

    # Services
    extraction_parser = providers.Factory(
        ExtractionParser,
        policy=providers.Callable(
            CandidatePolicy.from_setting,
            config.provided.get.call('extraction.candidate_policy', 'last')
        )
    )

    extraction_service = providers.Singleton(
        ExtractionService,
        backend=extraction_backend,
        parser=extraction_parser,
        categories=config.provided.get.call('vocabulary.categories'),
        source_accounts=config.provided.get.call('vocabulary.source_accounts')
    )

    ledger_service = providers.Singleton(
        LedgerService,
        table=ledger_table,
        detail_range=config.provided.get.call('ledger.detail_range', 'detailed!A:H'),
        summary_range=config.provided.get.call('ledger.summary_range', 'summary!A2:F12'),
        circuit_breaker=ledger_circuit_breaker
    )

    transaction_service = providers.Singleton(
        TransactionService,
        extraction_service=extraction_service,
        ledger_service=ledger_service
    )

    # Chat adapter
    stored_file_registry = providers.Singleton(StoredFileRegistry)

    telegram_application = providers.Singleton(
        build_application,
        token=credentials_manager.provided.get_telegram_token.call(),
        transaction_service=transaction_service,
        registry=stored_file_registry,
        spreadsheet_id=credentials_manager.provided.get_spreadsheet_id.call(),
        download_dir=config.provided.get.call('storage.download_dir', 'downloads')
    )


# Create a global container instance
container = Container()
