"""Failure values returned by the analysis entry points.

Every error carries a ``kind`` string so hosts can route it without
importing the classes: ``"FileNotFound"``, ``"DecodeFailed"``,
``"InvalidMode"`` or ``"Cancelled"``. A cancelled request is a normal
outcome (a newer request for the same target won), not a failure to show.
"""


class AnalysisError(Exception):
    kind = "AnalysisError"


class ImageNotFoundError(AnalysisError, FileNotFoundError):
    kind = "FileNotFound"

    def __init__(self, path):
        self.path = str(path)
        super().__init__(f"File not found: {self.path}")


class ImageDecodeError(AnalysisError):
    kind = "DecodeFailed"

    def __init__(self, reason):
        self.reason = str(reason)
        super().__init__(f"Failed to load image: {self.reason}")


class InvalidModeError(AnalysisError, ValueError):
    kind = "InvalidMode"

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid display_type: {value}")


class AnalysisCancelled(AnalysisError):
    kind = "Cancelled"

    def __init__(self, request_id=None):
        self.request_id = request_id
        msg = "Cancelled" if request_id is None else f"Cancelled: {request_id}"
        super().__init__(msg)
