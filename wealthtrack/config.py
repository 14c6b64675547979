"""Application configuration management using Pydantic Settings."""

from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wealthtrack.models.provident_fund import ProvidentFundPolicy
from wealthtrack.models.wealth_projection import ProjectionConfig
from wealthtrack.models.xirr import SolverConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")

    # Flask Configuration
    secret_key: str = Field(..., alias="SECRET_KEY")
    flask_app: str = Field(default="wsgi.py", alias="FLASK_APP")
    flask_env: str = Field(default="development", alias="FLASK_ENV")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # XIRR Solver
    xirr_initial_guess: float = Field(default=0.1, alias="XIRR_INITIAL_GUESS")
    xirr_tolerance: float = Field(default=1e-7, alias="XIRR_TOLERANCE")
    xirr_derivative_tolerance: float = Field(
        default=1e-7, alias="XIRR_DERIVATIVE_TOLERANCE"
    )
    xirr_max_iterations: int = Field(default=100, alias="XIRR_MAX_ITERATIONS")
    xirr_min_rate: float = Field(default=-0.99, alias="XIRR_MIN_RATE")
    xirr_max_rate: float = Field(default=10.0, alias="XIRR_MAX_RATE")

    # Provident Fund Policy
    epf_employee_rate: Decimal = Field(
        default=Decimal("0.12"), alias="EPF_EMPLOYEE_RATE"
    )
    epf_employer_rate: Decimal = Field(
        default=Decimal("0.12"), alias="EPF_EMPLOYER_RATE"
    )
    epf_pension_rate: Decimal = Field(
        default=Decimal("0.0833"), alias="EPF_PENSION_RATE"
    )
    epf_pension_wage_ceiling: Decimal = Field(
        default=Decimal("15000"), alias="EPF_PENSION_WAGE_CEILING"
    )
    epf_pension_contribution_cap: Decimal = Field(
        default=Decimal("1250"), alias="EPF_PENSION_CONTRIBUTION_CAP"
    )
    epf_pension_rounding_quantum: Decimal = Field(
        default=Decimal("1"), alias="EPF_PENSION_ROUNDING_QUANTUM"
    )

    # Wealth Projection
    projection_horizon_years: int = Field(
        default=50, alias="PROJECTION_HORIZON_YEARS"
    )

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v):
        """Ensure SECRET_KEY is provided and not a placeholder."""
        if not v or v == "your-secret-key-here-change-in-production":
            raise ValueError("SECRET_KEY must be set to a secure value")
        return v

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v):
        """Validate application environment."""
        allowed_envs = {"development", "testing", "production"}
        if v not in allowed_envs:
            raise ValueError(f"APP_ENV must be one of {allowed_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("xirr_max_iterations", "projection_horizon_years")
    @classmethod
    def validate_positive_int(cls, v):
        """Iteration limits and horizons must be positive."""
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    def solver_config(self) -> SolverConfig:
        """Build the XIRR solver limits."""
        return SolverConfig(
            initial_guess=self.xirr_initial_guess,
            tolerance=self.xirr_tolerance,
            derivative_tolerance=self.xirr_derivative_tolerance,
            max_iterations=self.xirr_max_iterations,
            min_rate=self.xirr_min_rate,
            max_rate=self.xirr_max_rate,
        )

    def provident_fund_policy(self) -> ProvidentFundPolicy:
        """Build the EPF contribution policy."""
        return ProvidentFundPolicy(
            employee_rate=self.epf_employee_rate,
            employer_rate=self.epf_employer_rate,
            pension_rate=self.epf_pension_rate,
            pension_wage_ceiling=self.epf_pension_wage_ceiling,
            pension_contribution_cap=self.epf_pension_contribution_cap,
            pension_rounding_quantum=self.epf_pension_rounding_quantum,
        )

    def projection_config(self) -> ProjectionConfig:
        """Build the wealth projection defaults."""
        return ProjectionConfig(default_horizon_years=self.projection_horizon_years)


def get_settings(env_file: Optional[str] = None) -> Settings:
    """Get application settings instance."""
    if env_file is not None:
        return Settings(_env_file=env_file)
    return Settings()


# Global settings instance - created on first use
_settings: Optional[Settings] = None


def get_global_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_global_settings() -> None:
    """Reset global settings instance (useful for testing)."""
    global _settings
    _settings = None
