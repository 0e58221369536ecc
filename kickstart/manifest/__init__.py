"""Template manifest (``template.toml``): models, loading and validation."""

from kickstart.manifest.loader import load_manifest, load_manifest_file
from kickstart.manifest.models import (
    Cleanup,
    Condition,
    Hook,
    Manifest,
    ResolvedVariables,
    ScalarValue,
    Variable,
    format_value,
    value_type,
    values_equal,
)
from kickstart.manifest.validation import validate_file, validate_manifest

__all__ = [
    "Cleanup",
    "Condition",
    "Hook",
    "Manifest",
    "ResolvedVariables",
    "ScalarValue",
    "Variable",
    "format_value",
    "load_manifest",
    "load_manifest_file",
    "validate_file",
    "validate_manifest",
    "value_type",
    "values_equal",
]
