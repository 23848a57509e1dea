"""
Wizard stages and transitions.

Each stage is its own frozen dataclass carrying exactly the data that exists
at that point, so a result without a generated image (or an analysis without
an upload) cannot be built::

    UploadStage -> AnalyzeStage -> GenerateStage -> ResultStage

Any stage can go back to ``UploadStage`` through ``reset``. A failed network
call moves to ``FailedStage``, which remembers the stage to retry from.
Transitions are pure functions returning a new stage.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Sequence, Union


class WizardStage(str, Enum):
    UPLOAD = "upload"
    ANALYZE = "analyze"
    GENERATE = "generate"
    RESULT = "result"
    FAILED = "failed"


class FailedAction(str, Enum):
    UPLOAD = "upload"
    ANALYZE = "analyze"
    GENERATE = "generate"


@dataclass(frozen=True)
class ModelPreset:
    id: str
    label: str


# Shown to the user only; the backend always uses its configured model.
MODEL_PRESETS: tuple[ModelPreset, ...] = (
    ModelPreset("flux-kontext-pro", "Flux Kontext Pro"),
    ModelPreset("flux-pro", "Flux Pro"),
    ModelPreset("flux-schnell", "Flux Schnell"),
)
DEFAULT_MODEL = MODEL_PRESETS[0].id

EXAMPLE_PROMPTS: tuple[str, ...] = (
    "Change hair color to blonde",
    "Add a modern haircut",
    "Make hair curly",
    "Add highlights",
    "Give me a bob cut",
    "Make hair shorter",
)

DOWNLOAD_FILENAME = "fluxstyle-transformation.jpg"
ACCEPTED_MIME_PREFIX = "image/"


def guess_mime_type(filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "application/octet-stream"


def is_accepted_file(filename: str) -> bool:
    """Only image/* files may be picked or dropped."""
    return guess_mime_type(filename).startswith(ACCEPTED_MIME_PREFIX)


class InvalidTransition(Exception):
    """A transition was requested from a stage that does not allow it."""


@dataclass(frozen=True)
class UploadedAsset:
    url: str


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: str

    @classmethod
    def from_payload(cls, payload: Any) -> "Recommendation":
        # Items come straight from the vision model and may be missing keys.
        if isinstance(payload, dict):
            return cls(
                title=str(payload.get("title") or ""),
                description=str(payload.get("description") or ""),
            )
        return cls(title="", description=str(payload))


@dataclass(frozen=True)
class GeneratedAsset:
    url: str


@dataclass(frozen=True)
class UploadStage:
    pass


@dataclass(frozen=True)
class AnalyzeStage:
    asset: UploadedAsset


@dataclass(frozen=True)
class GenerateStage:
    asset: UploadedAsset
    recommendations: tuple[Recommendation, ...]
    prompt: str = ""
    model: str = DEFAULT_MODEL


@dataclass(frozen=True)
class ResultStage:
    asset: UploadedAsset
    recommendations: tuple[Recommendation, ...]
    prompt: str
    generated: GeneratedAsset
    model: str = DEFAULT_MODEL


@dataclass(frozen=True)
class FailedStage:
    action: FailedAction
    previous: "RetryableStage"
    error: str
    pending: Any = field(default=None, compare=False)


Stage = Union[UploadStage, AnalyzeStage, GenerateStage, ResultStage, FailedStage]
RetryableStage = Union[UploadStage, AnalyzeStage, GenerateStage]

_STAGE_NAMES = {
    UploadStage: WizardStage.UPLOAD,
    AnalyzeStage: WizardStage.ANALYZE,
    GenerateStage: WizardStage.GENERATE,
    ResultStage: WizardStage.RESULT,
    FailedStage: WizardStage.FAILED,
}


def stage_name(stage: Stage) -> WizardStage:
    return _STAGE_NAMES[type(stage)]


def _expect(stage: Stage, expected: type) -> None:
    if not isinstance(stage, expected):
        raise InvalidTransition(
            f"Cannot leave stage '{stage_name(stage).value}' this way; "
            f"expected '{_STAGE_NAMES[expected].value}'"
        )


def begin_analysis(stage: Stage, asset: UploadedAsset) -> AnalyzeStage:
    _expect(stage, UploadStage)
    return AnalyzeStage(asset=asset)


def complete_analysis(stage: Stage, recommendations: Sequence[Any]) -> GenerateStage:
    """Fires for parsed and fallback analysis results alike."""
    _expect(stage, AnalyzeStage)
    items = tuple(
        r if isinstance(r, Recommendation) else Recommendation.from_payload(r)
        for r in recommendations
    )
    return GenerateStage(asset=stage.asset, recommendations=items)


def edit_prompt(stage: Stage, text: str) -> GenerateStage:
    _expect(stage, GenerateStage)
    return replace(stage, prompt=text)


def apply_recommendation(stage: Stage, index: int) -> GenerateStage:
    """Pre-fill the prompt with a recommendation's description."""
    _expect(stage, GenerateStage)
    if not 0 <= index < len(stage.recommendations):
        raise InvalidTransition(f"No recommendation at index {index}")
    return replace(stage, prompt=stage.recommendations[index].description)


def apply_example(stage: Stage, index: int) -> GenerateStage:
    _expect(stage, GenerateStage)
    if not 0 <= index < len(EXAMPLE_PROMPTS):
        raise InvalidTransition(f"No example prompt at index {index}")
    return replace(stage, prompt=EXAMPLE_PROMPTS[index])


def select_model(stage: Stage, model: str) -> GenerateStage:
    _expect(stage, GenerateStage)
    if model not in {preset.id for preset in MODEL_PRESETS}:
        raise InvalidTransition(f"Unknown model preset: {model}")
    return replace(stage, model=model)


def can_generate(stage: Stage) -> bool:
    return isinstance(stage, GenerateStage) and bool(stage.prompt.strip())


def complete_generation(stage: Stage, generated: GeneratedAsset) -> ResultStage:
    _expect(stage, GenerateStage)
    if not stage.prompt.strip():
        raise InvalidTransition("Prompt is empty")
    return ResultStage(
        asset=stage.asset,
        recommendations=stage.recommendations,
        prompt=stage.prompt,
        generated=generated,
        model=stage.model,
    )


def fail(stage: RetryableStage, action: FailedAction, error: str, pending: Any = None) -> FailedStage:
    """Record a failed call; *pending* holds what the retry needs (e.g. the file)."""
    if isinstance(stage, (ResultStage, FailedStage)):
        raise InvalidTransition(f"Cannot fail from stage '{stage_name(stage).value}'")
    return FailedStage(action=action, previous=stage, error=error, pending=pending)


def retry(stage: Stage) -> RetryableStage:
    _expect(stage, FailedStage)
    return stage.previous


def reset(stage: Stage) -> UploadStage:
    """Discard the upload, recommendations, prompt and generated image."""
    return UploadStage()
