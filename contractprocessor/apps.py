from django.apps import AppConfig

from .config import configure_logging


class ContractProcessorConfig(AppConfig):
    name = 'contractprocessor'
    verbose_name = 'Contract processor'

    def ready(self):
        configure_logging()
