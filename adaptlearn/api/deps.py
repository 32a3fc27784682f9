from functools import lru_cache
from typing import Optional

from adaptlearn.core.config import LLMSettings
from adaptlearn.services.analyze import AnalysisOrchestrator
from adaptlearn.services.exam import ExamAdapter
from adaptlearn.services.identify import DisabilityIdentifier
from adaptlearn.services.llm import LLMClient, OpenAIChatClient

# Built once per process; tests swap them via app.dependency_overrides.


@lru_cache
def get_settings() -> LLMSettings:
    return LLMSettings()


@lru_cache
def get_llm_client() -> Optional[LLMClient]:
    settings = get_settings()
    return OpenAIChatClient(settings) if settings.configured else None


@lru_cache
def get_orchestrator() -> AnalysisOrchestrator:
    return AnalysisOrchestrator(get_settings(), get_llm_client())


@lru_cache
def get_exam_adapter() -> ExamAdapter:
    return ExamAdapter(get_settings(), get_llm_client())


@lru_cache
def get_identifier() -> DisabilityIdentifier:
    return DisabilityIdentifier(get_settings(), get_llm_client())
