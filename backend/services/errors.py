"""
Error taxonomy shared by the upload, analysis and generation gateways.

Two kinds of failure reach clients:

- ``BadRequest`` (400): a required field is missing; the client can fix it.
- ``UpstreamFailure`` (500): storage or a model call raised. The public
  message is fixed and generic; the cause is only logged server-side.

Transient and permanent upstream failures are reported the same way and
nothing is retried.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for errors rendered as ``{"error": message}``."""

    status_code: int = 500
    public_message: str = "Internal error"

    def __init__(self, public_message: Optional[str] = None):
        if public_message is not None:
            self.public_message = public_message
        super().__init__(self.public_message)


class BadRequest(GatewayError):
    status_code = 400
    public_message = "Bad request"


class UpstreamFailure(GatewayError):
    status_code = 500
    public_message = "Internal error"


class UploadFailed(UpstreamFailure):
    public_message = "Upload failed"


class AnalysisFailed(UpstreamFailure):
    public_message = "Analysis failed"


class GenerationFailed(UpstreamFailure):
    public_message = "Image generation failed"
