from .client import StudioAPIError, StudioClient
from .session import SessionBusy, UnsupportedFile, WizardSession
from .state import (
    DOWNLOAD_FILENAME,
    EXAMPLE_PROMPTS,
    MODEL_PRESETS,
    FailedStage,
    GenerateStage,
    InvalidTransition,
    ResultStage,
    UploadStage,
    WizardStage,
)

__all__ = [
    "DOWNLOAD_FILENAME",
    "EXAMPLE_PROMPTS",
    "MODEL_PRESETS",
    "FailedStage",
    "GenerateStage",
    "InvalidTransition",
    "ResultStage",
    "SessionBusy",
    "StudioAPIError",
    "StudioClient",
    "UnsupportedFile",
    "UploadStage",
    "WizardSession",
    "WizardStage",
]
