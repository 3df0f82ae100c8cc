from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "form-engine"

    FORM_DEFAULT_PRIMARY_COLOR: str = "#8B5CF6"
    FORM_DEFAULT_SUBMIT_TEXT: str = "Submit"
    FORM_DEFAULT_SUCCESS_MESSAGE: str = "Thank you for your submission!"
    FORM_MAX_FIELDS: int = 250
    FORM_SLUG_MAX_LENGTH: int = 80

    FIELD_COPY_SUFFIX: str = " (Copy)"

    EMAIL_PATTERN: str = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"


settings = Settings()
