import os
import logging
from typing import Any, Callable, Dict, List, Optional

import structlog
from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_CATEGORIES = [
    "Groceries",
    "Utilities",
    "Entertainment",
    "Gifting",
    "Household",
    "Eating Out",
    "Health",
    "Transportation",
    "Savings",
    "Emergency",
    "Rent House",
]

DEFAULT_SOURCE_ACCOUNTS = [
    "GOPAY",
    "BCA",
    "OVO",
    "DANA",
    "ISAKU",
    "MANDIRI",
    "BNI",
    "BRI",
    "CASH",
]

_MISSING = object()


def _split_list(raw: Optional[str], default: List[str]) -> List[str]:
    if not raw:
        return list(default)
    items = [item.strip() for item in raw.split(',')]
    return [item for item in items if item] or list(default)


def _env_number(name: str, default: Any, cast: Callable[[str], Any]) -> Any:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigError(
            f"{name} must be a {cast.__name__}, got {raw!r}", e
        ).with_context("variable", name)


class ConfigManager:
    _instance = None
    _config: Dict[str, Any] = {}

    def __new__(cls):
        if not cls._instance:
            instance = super().__new__(cls)
            cls._load_config()
            cls._instance = instance
        return cls._instance

    @classmethod
    def _load_config(cls):
        # Values already present in the environment win over .env
        load_dotenv()

        environment = os.getenv('APP_ENV', 'development')

        cls._config = {
            'environment': {'current': environment},
            'credentials': {
                'telegram': {
                    'bot_token': os.getenv('TELEGRAM_BOT_TOKEN')
                },
                'gemini': {
                    'api_key': os.getenv('GEMINI_API_KEY')
                },
                'google': {
                    'service_account_file': os.getenv(
                        'GOOGLE_SERVICE_ACCOUNT_FILE', 'google-service-account.json'
                    )
                }
            },
            'ledger': {
                'spreadsheet_id': os.getenv('GOOGLE_SPREADSHEET_ID'),
                'detail_range': os.getenv('LEDGER_DETAIL_RANGE', 'detailed!A:H'),
                'summary_range': os.getenv('LEDGER_SUMMARY_RANGE', 'summary!A2:F12')
            },
            'gemini': {
                'model': os.getenv('GEMINI_MODEL', 'gemini-2.0-flash'),
                'temperature': _env_number('GEMINI_TEMPERATURE', 0.1, float)
            },
            'timeouts': {
                'backend_seconds': _env_number('GEMINI_TIMEOUT_SECONDS', 60, float),
                'ledger_seconds': _env_number('LEDGER_TIMEOUT_SECONDS', 30, float)
            },
            'circuit_breaker': {
                'max_failures': {
                    'gemini': _env_number('CIRCUIT_BREAKER_GEMINI_MAX_FAILURES', 5, int),
                    'ledger': _env_number('CIRCUIT_BREAKER_LEDGER_MAX_FAILURES', 3, int)
                },
                'max_retries': _env_number('CIRCUIT_BREAKER_MAX_RETRIES', 3, int),
                'reset_timeout': _env_number('CIRCUIT_BREAKER_RESET_TIMEOUT', 60, int)
            },
            'vocabulary': {
                'categories': _split_list(os.getenv('TRANSACTION_CATEGORIES'), DEFAULT_CATEGORIES),
                'source_accounts': _split_list(os.getenv('SOURCE_ACCOUNTS'), DEFAULT_SOURCE_ACCOUNTS)
            },
            'extraction': {
                'candidate_policy': os.getenv('EXTRACTION_CANDIDATE_POLICY', 'last')
            },
            'storage': {
                'download_dir': os.getenv('DOWNLOAD_DIR', 'downloads')
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'format': os.getenv('LOG_FORMAT', 'json')
            }
        }

    @classmethod
    def reload(cls):
        """Re-read the environment. Used by tests and the CLI after overrides."""
        cls._load_config()

    @classmethod
    def reset(cls):
        """Drop the singleton so the next instantiation reloads everything"""
        cls._instance = None
        cls._config = {}

    @classmethod
    def get(cls, key: str, default: Optional[Any] = None) -> Any:
        """
        Retrieve a configuration value by dotted key, e.g. ``ledger.summary_range``
        """
        value: Any = cls._config
        for k in key.split('.'):
            if not isinstance(value, dict):
                return default
            value = value.get(k, _MISSING)
            if value is _MISSING:
                return default
        return default if value is None else value

    @classmethod
    def setup_logging(cls, level: Optional[str] = None):
        """
        Configure stdlib logging and structlog on top of it
        """
        log_level = (level or cls.get('logging.level', 'INFO')).upper()
        log_format = cls.get('logging.format', 'json')

        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        renderer = (
            structlog.dev.ConsoleRenderer()
            if log_format == 'console'
            else structlog.processors.JSONRenderer()
        )

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                renderer
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
