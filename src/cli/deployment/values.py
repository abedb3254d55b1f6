"""Values overlay preparation.

Resolves the overlay for an environment and, where the target requires it,
writes a temporary copy with placeholder tokens replaced.
"""

from __future__ import annotations

import tempfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

import yaml
from loguru import logger

from .errors import ConfigurationError
from .target import EnvironmentRecord


def substitute_placeholders(text: str, substitutions: Mapping[str, str]) -> str:
    """Replace every occurrence of each placeholder token with its value.

    Args:
        text: Overlay contents
        substitutions: Token -> replacement (e.g. "${ECR_REPO_URI}" -> URI)

    Returns:
        Text with no remaining occurrences of any token
    """
    for token, value in substitutions.items():
        text = text.replace(token, value)
    return text


def _ensure_valid_yaml(content: str, source: Path) -> None:
    try:
        yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Values file is not valid YAML: {source}", details=str(e)
        ) from e


@contextmanager
def prepared_values_file(
    record: EnvironmentRecord,
    substitutions: Mapping[str, str],
) -> Iterator[Path]:
    """Yield the overlay path to hand to helm for an environment.

    With no substitutions the overlay is used in place. Otherwise a
    substituted copy is written to a temporary file that is removed when
    the context exits.

    Args:
        record: Environment being deployed
        substitutions: Placeholder tokens to replace

    Yields:
        Path to the overlay helm should read

    Raises:
        ConfigurationError: If the overlay is missing or not valid YAML
    """
    source = record.values_file
    if not source.exists():
        raise ConfigurationError(
            f"Environment values file not found: {source}",
            details="Valid environments: dev, staging, prod",
        )

    try:
        content = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            f"Cannot read values file: {source}", details=str(e)
        ) from e

    if not substitutions:
        _ensure_valid_yaml(content, source)
        yield source
        return

    resolved = substitute_placeholders(content, substitutions)
    _ensure_valid_yaml(resolved, source)

    with tempfile.NamedTemporaryFile(
        "w",
        suffix=".yaml",
        prefix=f"{record.release_name}-values-",
        delete=False,
        encoding="utf-8",
    ) as f:
        f.write(resolved)
        temp_file = Path(f.name)

    logger.debug(f"Wrote substituted values for {record.name} to {temp_file}")
    try:
        yield temp_file
    finally:
        temp_file.unlink(missing_ok=True)
