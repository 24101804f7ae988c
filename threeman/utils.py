"""Utility functions for JSON file I/O."""

import json
import logging
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('threeman.utils')


def _json_default(value: Any) -> Any:
    """Serialize the non-JSON types the store writes."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode='json')
    raise TypeError(f'Object of type {type(value).__name__} is not JSON serializable')


def load_json(
    path: Path | str,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Read a league JSON document, validating it when a schema is given.

    Used for league_config.json, the per-season league documents and
    box score summaries.

    Raises:
        FileNotFoundError: The document is missing
        json.JSONDecodeError: The document is not valid JSON
        ValueError: The document does not match ``schema``
    """
    path = Path(path)
    if not path.exists():
        logger.error(f'Missing JSON document: {path}')
        raise FileNotFoundError(f'File not found: {path}')

    logger.debug(f'Reading {path}')
    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f'Malformed JSON in {path} at position {e.pos}: {e.msg}')
        raise json.JSONDecodeError(f'Invalid JSON in {path}: {e.msg}', e.doc, e.pos) from e

    if schema is None:
        return data
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.error(f'{path} does not match {schema.__name__}: {e}')
        raise ValueError(f'Schema validation failed for {path}:\n{e}') from e


def save_json(
    path: Path | str,
    data: Any,
    indent: int = 2,
    create_dirs: bool = True,
) -> None:
    """
    Write ``data`` to ``path`` through a temp file and ``os.replace``.

    Readers see either the old document or the new one, never a partial
    write. Decimals are stored as strings.
    """
    path = Path(path)
    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(data, BaseModel):
        data = data.model_dump(mode='json')
    try:
        payload = json.dumps(data, indent=indent, ensure_ascii=False, default=_json_default)
    except TypeError as e:
        logger.error(f'Cannot serialize document for {path}: {e}')
        raise

    logger.debug(f'Writing {path}')

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(payload)
        os.replace(tmp_name, path)
    except OSError as e:
        logger.error(f'Failed to write file {path}: {e}')
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
