"""Management store (central Supabase project) settings."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ManagementStoreSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    MANAGEMENT_SUPABASE_URL: str = ""
    MANAGEMENT_SUPABASE_SERVICE_ROLE_KEY: SecretStr = SecretStr("")

    # Applies to both the management store and tenant stores
    SUPABASE_REQUEST_TIMEOUT: int = 30

    @property
    def is_configured(self) -> bool:
        return bool(
            self.MANAGEMENT_SUPABASE_URL.strip()
            and self.MANAGEMENT_SUPABASE_SERVICE_ROLE_KEY.get_secret_value().strip()
        )
