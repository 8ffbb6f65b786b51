from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # App settings
    PROJECT_NAME: str = "BudgetCycleAPI"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    DEFAULT_CURRENCY: str = "AUD"

    # DynamoDB
    DYNAMO_REGION: str = Field(default="ap-southeast-2")
    DYNAMO_USERS_TABLE: str = Field(default="budget-cycle-users", validation_alias="DYNAMO_TABLE_USERS")
    DYNAMO_BUDGETS_TABLE: str = Field(default="budget-cycle-budgets", validation_alias="DYNAMO_TABLE_BUDGETS")
    DYNAMO_BUDGET_PERIODS_TABLE: str = Field(
        default="budget-cycle-budget-periods", validation_alias="DYNAMO_TABLE_BUDGET_PERIODS"
    )
    DYNAMO_TRANSACTIONS_TABLE: str = Field(
        default="budget-cycle-transactions", validation_alias="DYNAMO_TABLE_TRANSACTIONS"
    )
    DYNAMO_DEBTS_TABLE: str = Field(default="budget-cycle-debts", validation_alias="DYNAMO_TABLE_DEBTS")
    DYNAMO_DEBT_PAYMENTS_TABLE: str = Field(
        default="budget-cycle-debt-payments", validation_alias="DYNAMO_TABLE_DEBT_PAYMENTS"
    )

    # AWS S3
    S3_BUCKET_NAME: str = Field(default="budget-cycle-reports")
    S3_REGION: str = Field(default="ap-southeast-2")

    # Bearer tokens issued by the identity provider
    JWT_SECRET_KEY: str = Field(default="change-me", validation_alias="JWT_SECRET")
    JWT_ALGORITHM: str = "HS256"

    # Cron endpoints
    CRON_SECRET: Optional[str] = Field(default=None)

    # Daily maintenance job (budget resets + debt reminders), UTC
    SCHEDULER_ENABLED: bool = Field(default=False)
    SCHEDULER_HOUR: int = Field(default=0)
    SCHEDULER_MINUTE: int = Field(default=5)

    # SMTP
    SMTP_HOST: str = Field(default="smtp.gmail.com")
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: Optional[str] = Field(default=None)
    SMTP_PASSWORD: Optional[str] = Field(default=None)
    SMTP_FROM_EMAIL: str = Field(default="no-reply@budget-cycle.local")

    # Notification defaults
    DEFAULT_ALERT_THRESHOLD: float = 80.0
    DEFAULT_DEBT_REMINDER_DAYS: int = 3


settings = Settings()
