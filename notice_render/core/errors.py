"""
Centralized error codes and exception classes
Shared by the render pipeline and the HTTP layer for consistent error handling
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


class ErrorCodes:
    """Standardized error code constants"""

    # Browser process errors
    BROWSER_UNAVAILABLE = "BROWSER_UNAVAILABLE"

    # Rendering errors
    RENDERING_TIMEOUT = "RENDERING_TIMEOUT"
    RENDER_ERROR = "RENDER_ERROR"


@dataclass
class RenderError:
    """Rendering error information"""
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    suggestions: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "error_code": self.code,
            "error_message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class RenderException(Exception):
    """Base class for rendering failures"""

    def __init__(self, error: RenderError):
        self.error = error
        super().__init__(str(error))

    @property
    def code(self) -> str:
        return self.error.code

    def to_dict(self) -> Dict[str, Any]:
        return self.error.to_dict()


class BrowserUnavailable(RenderException):
    """The browser process could not be started or obtained"""


class RenderTimeout(RenderException):
    """The render deadline elapsed before the PDF was produced"""


class RenderFailed(RenderException):
    """Any other rendering engine failure"""


class ErrorFactory:
    """Error object factory"""

    @staticmethod
    def browser_unavailable(original_error: str = None) -> BrowserUnavailable:
        """Browser launch failed"""
        details = {"original_error": original_error} if original_error else None
        return BrowserUnavailable(RenderError(
            code=ErrorCodes.BROWSER_UNAVAILABLE,
            message="Headless browser could not be started",
            details=details,
            suggestions="Check that Chromium is installed (playwright install chromium)"
        ))

    @staticmethod
    def rendering_timeout(timeout_seconds: float = None) -> RenderTimeout:
        """Render deadline exceeded"""
        details = {"timeout_seconds": timeout_seconds} if timeout_seconds is not None else None
        return RenderTimeout(RenderError(
            code=ErrorCodes.RENDERING_TIMEOUT,
            message="Rendering operation timed out",
            details=details,
            suggestions="Retry the request; large or slow content may need a longer timeout"
        ))

    @staticmethod
    def render_failed(original_error: str = None) -> RenderFailed:
        """Rendering engine error"""
        details = {"original_error": original_error} if original_error else None
        return RenderFailed(RenderError(
            code=ErrorCodes.RENDER_ERROR,
            message="Rendering engine failed to produce a PDF",
            details=details,
        ))
