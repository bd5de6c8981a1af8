"""Error taxonomy shared by the voice pipeline, the store and the HTTP layer.

Every error carries a stable ``code`` for programmatic callers, the HTTP
status the API answers with, and a plain-language ``user_message`` that the
voice endpoints show instead of the raw code.
"""


class VoiceBudgetError(Exception):
    code = "error"
    status_code = 500
    user_message = "Sorry, something went wrong. Please try again."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail or self.user_message


class EmptyInput(VoiceBudgetError):
    code = "empty_input"
    status_code = 400
    user_message = "Please say or type a command."


class EmptyAudio(VoiceBudgetError):
    code = "empty_audio"
    status_code = 400
    user_message = "I didn't receive any audio. Please try recording again."


class RemoteUnavailable(VoiceBudgetError):
    code = "remote_unavailable"
    status_code = 500
    user_message = "The assistant is unavailable right now. Please try again in a moment."


class MalformedResponse(VoiceBudgetError):
    code = "malformed_response"
    status_code = 500
    user_message = "Sorry, I didn't understand that. Try rephrasing."


class InvalidArguments(VoiceBudgetError):
    code = "invalid_arguments"
    status_code = 400
    user_message = "Sorry, some details of that command were missing or invalid. Try rephrasing."


class InvalidAmount(InvalidArguments):
    code = "invalid_amount"
    user_message = "The amount must be a positive number."


class UnknownOperation(VoiceBudgetError):
    code = "unknown_operation"
    status_code = 400
    user_message = "Sorry, I can't do that yet. Try rephrasing."

    def __init__(self, operation: str) -> None:
        super().__init__(f"Unknown operation '{operation}'")
        self.operation = operation


class NotFound(VoiceBudgetError):
    code = "not_found"
    status_code = 404
    user_message = "I couldn't find what you were referring to."


class TranscriptionFailed(VoiceBudgetError):
    code = "transcription_failed"
    status_code = 500
    user_message = "Sorry, I couldn't make out that recording. Please try again."


class MissingConfiguration(VoiceBudgetError):
    code = "missing_configuration"
    status_code = 500
    user_message = "The assistant is not configured yet."

    def __init__(self, setting: str) -> None:
        super().__init__(f"Required setting {setting} is not set")
        self.setting = setting


class NoSelection(VoiceBudgetError):
    """The model answered in free text instead of choosing an operation.

    This is a terminal outcome rather than a failure: callers fall back to
    a help message.
    """

    code = "no_selection"
    status_code = 200
    user_message = (
        "Sorry, I didn't understand that. Try something like "
        "\"I spent $12 on lunch\" or \"create a goal to save $500 for a trip\"."
    )

    def __init__(self, reply: str | None = None) -> None:
        super().__init__("Model did not select an operation")
        self.reply = reply


def transaction_not_found(transaction_id: int) -> str:
    return f"Transaction {transaction_id} not found"


def goal_not_found(goal_id: int) -> str:
    return f"Goal {goal_id} not found"


def category_not_found(name: str) -> str:
    return f"Category '{name}' not found"
