from functools import lru_cache
from typing import Optional

from fastapi import Depends
from typing_extensions import Annotated

from md_agent.config.config import settings
from md_agent.core.language_model.entities.model_entity import BaseCompletionProvider
from md_agent.core.language_model.manager import LanguageModelManager, language_model_manager
from md_agent.service.conversion_service import ConversionService
from md_agent.service.extraction_service import ExtractionService
from md_agent.service.history_service import HistoryService
from md_agent.service.merge_service import RuleMergeService
from md_agent.service.rule_service import RuleService
from md_agent.service.rule_set_service import RuleSetService
from md_agent.storage.storage_service import StorageService


@lru_cache()
def get_storage_service() -> StorageService:
    return StorageService(settings.DATA_DIR, settings.HISTORY_LIMIT)


def get_language_model_manager() -> LanguageModelManager:
    return language_model_manager


def get_completion_provider(
        manager: LanguageModelManager = Depends(get_language_model_manager),
) -> Optional[BaseCompletionProvider]:
    return manager.get_provider()


def get_extraction_service(
        provider: Optional[BaseCompletionProvider] = Depends(get_completion_provider),
):
    return ExtractionService(
        provider,
        max_retries=settings.EXTRACT_MAX_RETRIES,
        retry_delay=settings.EXTRACT_RETRY_DELAY,
    )


def get_conversion_service(
        provider: Optional[BaseCompletionProvider] = Depends(get_completion_provider),
):
    return ConversionService(provider)


def get_merge_service(
        provider: Optional[BaseCompletionProvider] = Depends(get_completion_provider),
):
    return RuleMergeService(provider)


def get_rule_service(
        storage: StorageService = Depends(get_storage_service),
        merge_service: RuleMergeService = Depends(get_merge_service),
):
    return RuleService(storage, merge_service)


def get_rule_set_service(
        storage: StorageService = Depends(get_storage_service),
):
    return RuleSetService(storage)


def get_history_service(
        storage: StorageService = Depends(get_storage_service),
):
    return HistoryService(storage)


LanguageModelManagerDep = Annotated[LanguageModelManager, Depends(get_language_model_manager)]
ExtractionServiceDep = Annotated[ExtractionService, Depends(get_extraction_service)]
ConversionServiceDep = Annotated[ConversionService, Depends(get_conversion_service)]
RuleServiceDep = Annotated[RuleService, Depends(get_rule_service)]
RuleSetServiceDep = Annotated[RuleSetService, Depends(get_rule_set_service)]
HistoryServiceDep = Annotated[HistoryService, Depends(get_history_service)]
