# File: contractprocessor/config.py
import logging
import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    PROJECT_NAME: str = "Contract Processor"

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # "blocks" walks paragraphs/headings/lists/tables, "lines" lays out plain lines
    DOCX_LAYOUT_MODE: str = os.getenv("DOCX_LAYOUT_MODE", "blocks")

    MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "20"))

    # LLM settings
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_FIELD_MODEL: str = os.getenv("OPENAI_FIELD_MODEL", "gpt-4-turbo")

    # Reconstruction footer
    FOOTER_DATE_FORMAT: str = os.getenv("FOOTER_DATE_FORMAT", "%m/%d/%Y")


settings = Settings()


def configure_logging(level: str = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper())
