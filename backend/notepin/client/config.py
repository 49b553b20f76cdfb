"""
Notepin — Client Configuration
===============================

What:  Settings for the client side, read from NOTEPIN_* environment
       variables (or a .env file) with pydantic-settings.

The PIN is a lightweight confirmation step shared by every user of the
page, not authentication: anyone who can read the client can read it.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_PIN_CODE = "1018520"
PIN_LENGTH = 7


class ClientSettings(BaseSettings):
    """Client settings: where the API lives and what the PIN is."""

    base_url: str = Field(default="http://localhost:3000")
    pin_code: str = Field(default=DEFAULT_PIN_CODE)
    max_content_length: int = Field(default=2000, ge=1)
    max_images: int = Field(default=9, ge=0)

    # Pause between marking a card as leaving and sending the delete
    delete_exit_delay: float = Field(default=0.25, ge=0)

    @field_validator("pin_code")
    @classmethod
    def validate_pin_code(cls, v: str) -> str:
        if len(v) != PIN_LENGTH or not v.isdigit():
            raise ValueError(f"pin_code must be exactly {PIN_LENGTH} digits")
        return v

    model_config = {
        "env_prefix": "NOTEPIN_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
