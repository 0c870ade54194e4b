"""coSPEC workflow nodes - create, poll and receive coding agent runs."""

from .client import CospecClient
from .errors import ApiError, CospecError, RunTimeoutError, WebhookRegistrationError
from .normalize import flatten_run_output
from .poller import RunPoller

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "CospecClient",
    "CospecError",
    "RunPoller",
    "RunTimeoutError",
    "WebhookRegistrationError",
    "flatten_run_output",
]
