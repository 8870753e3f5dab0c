"""Helpers for locating and loading form schema files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from crusade_form.errors import SchemaError
from crusade_form.schema import FormDefinition, parse_form

logger = logging.getLogger(__name__)

FORM_SCHEMA_FILENAME = "form_schema.json"
SCHEMAS_ROOT = Path(__file__).resolve().parents[1] / "form_schemas"
CRUSADE_REPORT_FORM_KEY = "crusade_report"


def discover_local_forms(root: Optional[Path] = None) -> Dict[str, Path]:
    """Return a mapping of ``form_key -> path`` for local schema files."""

    schemas_root = root or SCHEMAS_ROOT
    forms: Dict[str, Path] = {}
    if schemas_root.exists():
        for entry in sorted(schemas_root.iterdir()):
            if not entry.is_dir():
                continue
            schema_path = entry / FORM_SCHEMA_FILENAME
            if schema_path.exists():
                forms[entry.name] = schema_path
    return forms


def load_form_file(form_key: str, path: Path) -> FormDefinition:
    """Read and validate the schema stored at ``path``."""

    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"{path}: invalid JSON ({exc}).") from exc

    if not isinstance(payload, dict):
        raise SchemaError(f"{path}: top-level value must be an object.")

    form = parse_form(form_key, payload)
    logger.info(
        "Loaded form %s from %s with member types %s",
        form_key,
        path,
        ", ".join(option.value for option in form.member_types),
    )
    return form


def load_form(form_key: str = CRUSADE_REPORT_FORM_KEY, root: Optional[Path] = None) -> FormDefinition:
    """Return the validated form identified by ``form_key``."""

    forms = discover_local_forms(root)
    if form_key not in forms:
        raise SchemaError(f"No schema file found for form {form_key!r}.")
    return load_form_file(form_key, forms[form_key])

