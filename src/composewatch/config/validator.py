"""Validation utilities for project configuration."""

from pydantic import ValidationError as PydanticValidationError


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into one readable line per field.

    Missing fields are reported with the key operators write in their config
    file, so ``project_name`` reads as ``project_name (PROJECT_NAME)``.

    Args:
        exc: Pydantic ValidationError exception

    Returns:
        List of human-readable error messages
    """
    errors: list[str] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        field_path = ".".join(str(item) for item in loc) if loc else "config"
        msg = error.get("msg", "Unknown error")
        error_type = error.get("type", "")

        if error_type == "missing":
            formatted = (
                f"Field '{field_path}' ({field_path.upper()}) is required "
                "but was not set"
            )
        elif error_type == "value_error" or error_type.endswith("_parsing"):
            received = error.get("input")
            formatted = f"Field '{field_path}': {msg} (received: {received!r})"
        else:
            formatted = f"Field '{field_path}': {msg}"

        errors.append(formatted)

    return errors if errors else ["Validation failed with unknown error"]
