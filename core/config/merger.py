"""Deep merge logic for layered gateway configuration."""


def deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries. Override wins on conflicts.

    A ``None`` in the override never replaces a base value, so unset CLI
    flags and missing env vars leave file values alone.

    Args:
        base: Base configuration
        override: Configuration to merge on top

    Returns:
        New merged dictionary

    Example:
        base = {"infisical": {"baseUrl": "https://app.infisical.com", "timeout": 30}}
        override = {"infisical": {"timeout": 10, "baseUrl": None}}
        result = {"infisical": {"baseUrl": "https://app.infisical.com", "timeout": 10}}
    """
    result = base.copy()

    for key, value in override.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result
