"""
API Module - HTTP interface for the quest authoring tools.

Exposes the engine via REST API. The authoring pages:
1. Upload card data (or the server preloads it)
2. Generate quests, optionally with a chosen verb
3. Step through the pipeline one stage at a time
4. Read the run log and statistics
5. Run the validator for balance analysis

Engine state lives in one in-memory service; nothing is persisted.
"""

from .schemas import (
    # Requests
    GenerateQuestRequest,
    StepRequest,
    ValidateRequest,
    # Responses
    QuestResponse,
    StepResponse,
    LogsResponse,
    DecksResponse,
    ValidationReportResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    CardInfo,
    QuestSummary,
    LogEntryInfo,
    # Enums
    ErrorCode,
    PipelineStageName,
)
from .service import QuestService, ServiceError
from .app import create_app

__all__ = [
    # Requests
    "GenerateQuestRequest",
    "StepRequest",
    "ValidateRequest",
    # Responses
    "QuestResponse",
    "StepResponse",
    "LogsResponse",
    "DecksResponse",
    "ValidationReportResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "CardInfo",
    "QuestSummary",
    "LogEntryInfo",
    # Enums
    "ErrorCode",
    "PipelineStageName",
    # Service
    "QuestService",
    "ServiceError",
    "create_app",
]
