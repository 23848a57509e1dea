"""
Wizard session: owns the current stage and drives it through the API.

Every network call is awaited in turn; while one is in flight ``is_busy`` is
set and any other call is refused with ``SessionBusy``. A failed call leaves
the session in ``FailedStage`` with the server's message; ``retry()`` runs
the same call again.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Union

from wizard import state
from wizard.client import StudioAPIError, StudioClient
from wizard.state import (
    AnalyzeStage,
    FailedAction,
    FailedStage,
    GeneratedAsset,
    InvalidTransition,
    Stage,
    UploadedAsset,
    UploadStage,
)

logger = logging.getLogger(__name__)


class SessionBusy(RuntimeError):
    """Another call is still in flight."""


class UnsupportedFile(ValueError):
    """The picked file is not an image."""


class WizardSession:
    def __init__(self, client: StudioClient):
        self.client = client
        self.stage: Stage = UploadStage()
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def stage_name(self) -> state.WizardStage:
        return state.stage_name(self.stage)

    @contextmanager
    def _round_trip(self):
        if self._busy:
            raise SessionBusy("A request is already in progress")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    def _ensure_idle(self) -> None:
        if self._busy:
            raise SessionBusy("A request is already in progress")

    # ---- network steps ----

    async def upload_file(self, path: Union[str, Path]) -> Stage:
        """Upload *path* and go straight on to analysis."""
        path = Path(path)
        if not isinstance(self.stage, UploadStage):
            raise InvalidTransition("Reset the wizard before uploading another photo")
        if not state.is_accepted_file(path.name):
            raise UnsupportedFile(f"Not an image file: {path.name}")

        with self._round_trip():
            try:
                url = await self.client.upload(path)
            except (StudioAPIError, OSError) as e:
                logger.warning("Upload of %s failed: %s", path.name, e)
                self.stage = state.fail(self.stage, FailedAction.UPLOAD, str(e), pending=path)
                return self.stage

            self.stage = state.begin_analysis(self.stage, UploadedAsset(url=url))
            await self._analyze()
        return self.stage

    async def _analyze(self) -> None:
        if not isinstance(self.stage, AnalyzeStage):
            raise InvalidTransition("No uploaded photo to analyze")
        try:
            recommendations = await self.client.analyze(self.stage.asset.url)
        except StudioAPIError as e:
            logger.warning("Analysis of %s failed: %s", self.stage.asset.url, e)
            self.stage = state.fail(self.stage, FailedAction.ANALYZE, str(e))
            return
        self.stage = state.complete_analysis(self.stage, recommendations)

    async def generate(self) -> Stage:
        if not state.can_generate(self.stage):
            raise InvalidTransition("Enter a prompt before generating")

        with self._round_trip():
            current = self.stage
            try:
                url = await self.client.generate(current.asset.url, current.prompt)
            except StudioAPIError as e:
                logger.warning("Generation failed: %s", e)
                self.stage = state.fail(current, FailedAction.GENERATE, str(e))
                return self.stage
            self.stage = state.complete_generation(current, GeneratedAsset(url=url))
        return self.stage

    async def retry(self) -> Stage:
        """Run the failed call again from the stage it started in."""
        self._ensure_idle()
        failed = self.stage
        if not isinstance(failed, FailedStage):
            raise InvalidTransition("Nothing to retry")

        self.stage = state.retry(failed)
        if failed.action == FailedAction.UPLOAD:
            return await self.upload_file(failed.pending)
        if failed.action == FailedAction.ANALYZE:
            with self._round_trip():
                await self._analyze()
            return self.stage
        return await self.generate()

    # ---- local edits ----

    def edit_prompt(self, text: str) -> Stage:
        self._ensure_idle()
        self.stage = state.edit_prompt(self.stage, text)
        return self.stage

    def apply_recommendation(self, index: int) -> Stage:
        self._ensure_idle()
        self.stage = state.apply_recommendation(self.stage, index)
        return self.stage

    def apply_example(self, index: int) -> Stage:
        self._ensure_idle()
        self.stage = state.apply_example(self.stage, index)
        return self.stage

    def select_model(self, model: str) -> Stage:
        self._ensure_idle()
        self.stage = state.select_model(self.stage, model)
        return self.stage

    def reset(self) -> Stage:
        self._ensure_idle()
        self.stage = state.reset(self.stage)
        return self.stage
