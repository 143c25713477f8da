from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # API Configuration
    debug: bool = False
    environment: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 3001

    # Azure DevOps Configuration (required at startup)
    ado_org_url: Optional[str] = None
    ado_project: Optional[str] = None
    ado_pat: Optional[str] = None
    ado_api_version: str = "7.1-preview.1"

    # Azure OpenAI Configuration (only needed for recommendations)
    azure_openai_endpoint: Optional[str] = None
    azure_openai_api_key: Optional[str] = None
    azure_openai_deployment_name: str = "gpt-4"
    azure_openai_api_version: str = "2024-02-15-preview"
    azure_openai_max_tokens: int = 4000

    # Default test plan used when a recommendation request omits testPlanId
    test_plan_id: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
