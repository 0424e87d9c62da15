"""Custom exception hierarchy for ApplyPilot."""


class ApplyPilotError(Exception):
    """Base exception for all ApplyPilot errors."""


class ConfigurationError(ApplyPilotError):
    """Raised when settings or the candidate profile are invalid or missing."""


class ProfileNotSetError(ApplyPilotError):
    """Raised when an application is attempted before ``set_profile()``."""


class UnknownSourceError(ApplyPilotError):
    """Raised when no scraper is registered for the requested job source."""


class QueueAlreadyRunningError(ApplyPilotError):
    """Raised when a queue run is started for a source that is already running one."""


class BrowserLaunchError(ApplyPilotError):
    """Raised when the browser fails to start."""


class BrowserNotInitializedError(ApplyPilotError):
    """Raised when a scraper is used before ``initialize()``."""


class NavigationError(ApplyPilotError):
    """Raised when a page fails to load during an explicit setup call."""


class LLMError(ApplyPilotError):
    """Base class for language-model transport failures."""


class ModelNotConfiguredError(LLMError):
    """Raised when no model is selected for a chat completion."""


class LLMTransportError(LLMError):
    """Raised when the model endpoint is unreachable or answers with an error."""


class LLMResponseError(LLMError):
    """Raised when a completion response carries no usable choice."""
