from pydantic_settings import BaseSettings, SettingsConfigDict

from compliance.models.license import LicenseView


class Settings(BaseSettings):
    PROJECT_NAME: str = "Compliance Evaluator"

    LOG_LEVEL: str = "INFO"

    # License view used by license atoms that are not given an explicit view
    DEFAULT_LICENSE_VIEW: LicenseView = LicenseView.CONCLUDED_OR_REST
    LOG_MALFORMED_LICENSE_EXPRESSIONS: bool = True

    # Dependency trees deeper than this are rejected when the analysis result is loaded
    MAX_DEPENDENCY_TREE_DEPTH: int = 256

    METRICS_ENABLED: bool = True

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", frozen=True)


settings = Settings()
