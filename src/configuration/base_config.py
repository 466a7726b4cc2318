"""
Common base for every settings group of the graph service.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict

class BaseConfig(BaseSettings):
    """
    Settings are read from the process environment, then from `.env` in the
    working directory. Names are matched case-sensitively and unknown keys are
    ignored, so one `.env` can feed every group.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding='utf-8',
        case_sensitive=True,
        env_ignore_empty=True,
        extra='ignore'
    )
