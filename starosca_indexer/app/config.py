"""Config file."""
from urllib.parse import quote_plus

from eth_utils import is_address, to_checksum_address
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_SQLITE_URL = "sqlite+aiosqlite:///./data/starosca.db"


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field("starosca-indexer", alias="PROJECT_NAME")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # DATABASE
    database_url: str | None = Field(None, alias="DATABASE_URL")
    postgres_user: str | None = Field(None, alias="POSTGRES_USER")
    postgres_password: SecretStr | None = Field(None, alias="POSTGRES_PASSWORD")
    postgres_server: str | None = Field(None, alias="POSTGRES_SERVER")
    postgres_port: int = Field(5432, alias="POSTGRES_PORT")
    postgres_db: str | None = Field(None, alias="POSTGRES_DB")

    # CHAIN
    rpc_url: str = Field("https://sepolia.base.org", alias="RPC_URL")
    rpc_timeout_seconds: float = Field(30.0, gt=0, alias="RPC_TIMEOUT_SECONDS")
    chain_id: int = Field(84532, gt=0, alias="CHAIN_ID")  # Base Sepolia
    factory_address: str = Field(
        "0x6D59cE9DfC9dB97C8b4EBCF53807b606BB4Ed370", alias="FACTORY_ADDRESS"
    )

    # INDEXER
    polling_interval_seconds: float = Field(10.0, gt=0, alias="POLLING_INTERVAL_SECONDS")

    @field_validator("factory_address")
    @classmethod
    def checksum_factory_address(cls, value: str) -> str:
        if not is_address(value):
            raise ValueError(f"FACTORY_ADDRESS is not a valid address: {value!r}")
        return to_checksum_address(value)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def assemble_db_url(self) -> "Settings":
        if self.database_url:
            return self

        if self.postgres_server and self.postgres_user and self.postgres_db:
            user = quote_plus(self.postgres_user)
            password = ""
            if self.postgres_password is not None:
                password = quote_plus(self.postgres_password.get_secret_value())
            host = self.postgres_server
            port = self.postgres_port
            db = self.postgres_db

            self.database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"
        else:
            self.database_url = _DEFAULT_SQLITE_URL

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


settings: Settings = Settings()
