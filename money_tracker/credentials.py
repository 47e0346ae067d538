from typing import Optional
import logging

from pydantic import BaseModel, Field

from .config import ConfigManager
from .errors import ConfigError


class APICredentials(BaseModel):
    """Model for API credentials"""
    telegram_bot_token: Optional[str] = Field(None, description="Telegram bot token")
    gemini_api_key: Optional[str] = Field(None, description="Gemini API key")
    spreadsheet_id: Optional[str] = Field(None, description="Target Google spreadsheet ID")
    service_account_file: str = Field(
        "google-service-account.json",
        description="Path to the Google service account JSON key"
    )


_ENV_NAMES = {
    'telegram_bot_token': 'TELEGRAM_BOT_TOKEN',
    'gemini_api_key': 'GEMINI_API_KEY',
    'spreadsheet_id': 'GOOGLE_SPREADSHEET_ID',
}


class CredentialsManager:
    """
    Resolves credentials from constructor arguments first, then configuration.

    Nothing is validated at construction; each getter raises ``ConfigError``
    naming the missing environment variable when the value is required but
    absent.
    """
    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        telegram_bot_token: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
        spreadsheet_id: Optional[str] = None,
        service_account_file: Optional[str] = None
    ):
        self.logger = logging.getLogger(__name__)
        config = config_manager or ConfigManager()

        self.credentials = APICredentials(
            telegram_bot_token=telegram_bot_token or config.get('credentials.telegram.bot_token'),
            gemini_api_key=gemini_api_key or config.get('credentials.gemini.api_key'),
            spreadsheet_id=spreadsheet_id or config.get('ledger.spreadsheet_id'),
            service_account_file=(
                service_account_file
                or config.get('credentials.google.service_account_file', 'google-service-account.json')
            )
        )

    def _require(self, field: str) -> str:
        value = getattr(self.credentials, field)
        if not value:
            env_name = _ENV_NAMES[field]
            raise ConfigError(
                f"required environment variable not set: {env_name}"
            ).with_context("variable", env_name)
        return value

    def get_telegram_token(self) -> str:
        return self._require('telegram_bot_token')

    def get_gemini_api_key(self) -> str:
        return self._require('gemini_api_key')

    def get_spreadsheet_id(self) -> str:
        return self._require('spreadsheet_id')

    def get_service_account_file(self) -> str:
        return self.credentials.service_account_file

    def validate(self, require_telegram: bool = True) -> None:
        """
        Check every credential the process needs before starting.

        Args:
            require_telegram: Whether the chat bot token is needed (the CLI's
                one-shot commands do not need it)

        Raises:
            ConfigError: For the first missing credential
        """
        if require_telegram:
            self.get_telegram_token()
        self.get_gemini_api_key()
        self.get_spreadsheet_id()
        self.logger.info("Credentials validated successfully")
