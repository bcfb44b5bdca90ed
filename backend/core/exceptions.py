"""
Custom exceptions for the Script Engine.
These exceptions help with proper error handling and user feedback.
"""

from typing import List, Optional

class ScriptEngineException(Exception):
    """Base exception class for the Script Engine."""
    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)

class ValidationError(ScriptEngineException):
    """Raised when a generation request fails validation."""
    def __init__(self, errors: List[str], warnings: Optional[List[str]] = None):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__(f"Validation failed: {', '.join(self.errors)}", "INVALID_REQUEST")

class ContextLoadError(ScriptEngineException):
    """Raised when the user profile cannot be loaded."""
    def __init__(self, message: str, user_id: Optional[str] = None, not_found: bool = False):
        self.user_id = user_id
        self.not_found = not_found
        super().__init__(message, "CONTEXT_LOAD_FAILED")

class GenerationError(ScriptEngineException):
    """Raised when script generation fails."""
    retryable = False

    def __init__(self, message: str, error_code: str = "GENERATION_FAILED"):
        super().__init__(message, error_code)

class RetryableGenerationError(GenerationError):
    """Transient completion failure (timeout, quota, upstream outage)."""
    retryable = True

class CompletionTimeoutError(RetryableGenerationError):
    """Raised when the completion call exceeds its timeout."""
    def __init__(self, message: str):
        super().__init__(message, "COMPLETION_TIMEOUT")

class CompletionRateLimitError(RetryableGenerationError):
    """Raised when the completion service rate limits or runs out of quota."""
    def __init__(self, message: str):
        super().__init__(message, "API_RATE_LIMIT")

class NonRetryableGenerationError(GenerationError):
    """Completion failure that will not succeed on retry."""
    pass

class TemplateEchoError(NonRetryableGenerationError):
    """Raised when the model returns the instruction template instead of a script."""
    def __init__(self, message: str = "AI model returned invalid response format. Please try again."):
        super().__init__(message, "TEMPLATE_ECHO")

class ParseFailureError(GenerationError):
    """Raised when no parsing strategy can extract the four script sections."""
    def __init__(self, message: str):
        super().__init__(message, "PARSE_FAILED")

class ConfigurationError(ScriptEngineException):
    """Raised when there are configuration issues."""
    def __init__(self, message: str):
        super().__init__(message, "CONFIGURATION_ERROR")

# Error code mappings for frontend
ERROR_CODES = {
    # Request Errors
    "INVALID_REQUEST": "The script request is invalid. Please check the idea, duration, type and tone.",

    # Context Errors
    "CONTEXT_LOAD_FAILED": "Your profile could not be loaded. Please sign in again.",

    # Generation Errors
    "GENERATION_FAILED": "Script generation failed. Please try again.",
    "COMPLETION_TIMEOUT": "The AI service took too long to respond. Please try again.",
    "API_RATE_LIMIT": "AI service rate limit exceeded. Please wait before retrying.",
    "TEMPLATE_ECHO": "AI model returned invalid response format. Please try again.",
    "PARSE_FAILED": "The generated script could not be structured into hook, bridge, nugget and call to action.",

    # General Errors
    "CONFIGURATION_ERROR": "System configuration error. Please contact support.",
}

def get_user_friendly_message(error_code: str) -> str:
    """Get user-friendly error message for error codes."""
    return ERROR_CODES.get(error_code, "An unexpected error occurred. Please try again.")
