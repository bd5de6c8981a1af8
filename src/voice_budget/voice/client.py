from openai import OpenAI

from voice_budget.core import settings


def build_openai_client(api_key: str | None = None, base_url: str | None = None) -> OpenAI:
    """OpenAI-compatible client; raises MissingConfiguration without a key.

    Retries are disabled: a failed call is reported to the caller as is.
    """
    return OpenAI(
        api_key=api_key or settings.require_setting("OPENAI_API_KEY"),
        base_url=base_url or settings.optional_setting("OPENAI_BASE_URL"),
        max_retries=0,
    )
