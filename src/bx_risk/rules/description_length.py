from config.settings import settings
from src.bx_common.errors import DescriptionTooLongError


def check_description_length(description: str | None) -> None:
    """Raise DescriptionTooLongError if description exceeds the configured limit."""
    max_length = settings.REPORT_DESCRIPTION_MAX_LENGTH
    if description is not None and len(description) > max_length:
        raise DescriptionTooLongError(max_length)
