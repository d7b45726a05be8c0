"""Comparison options schema and config loading.

Provides centralized validation of comparison options using pydantic:
    - Options: threshold, anti-aliasing handling, diff image colors/opacity
    - YAML config files (pixelmatch.v1 schema) loaded with fail-fast errors

Every entrypoint (library call, CLI flags, YAML file) funnels through
``Options`` so an out-of-range value is reported before any pixel is touched.

Ranges:
    - threshold, alpha: [0.0, 1.0]
    - colors: RGB triples, channels in [0, 255]

Usage:
    from pixelmatch.utils import validators

    opts = validators.build_options(threshold=0.05, diff_mask=True)
    opts = validators.load_options("configs/pixelmatch.v1.yaml", threshold=0.2)
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

RGB = Tuple[int, int, int]

SCHEMA_VERSION = "pixelmatch.v1"

DEFAULT_AA_COLOR: RGB = (255, 255, 0)
DEFAULT_DIFF_COLOR: RGB = (255, 0, 0)


class InvalidOptionError(ValueError):
    """Raised when a comparison option is outside its allowed range."""

    pass


def _check_rgb(v: Optional[RGB]) -> Optional[RGB]:
    if v is None:
        return v
    if len(v) != 3:
        raise ValueError(f"Color must have 3 channels (R, G, B), got {len(v)}")
    for ch in v:
        if not (0 <= ch <= 255):
            raise ValueError(f"Color channel {ch} out of range [0, 255]")
    return v


def _format_validation_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


class Options(BaseModel):
    """Comparison options (immutable).

    ``diff_color_alt`` marks pixels that got darker in the actual image
    (expected brighter than actual); unset means ``diff_color`` is used for
    both directions.

    Direct construction validates like ``build_options``: out-of-range or
    unknown fields raise ``InvalidOptionError``.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    threshold: float = Field(0.1, ge=0.0, le=1.0, description="Matching threshold; smaller is stricter")
    include_aa: bool = Field(False, description="Count anti-aliased pixels as differences")
    alpha: float = Field(0.1, ge=0.0, le=1.0, description="Opacity of the original image in the diff output")
    aa_color: RGB = Field(DEFAULT_AA_COLOR, description="Color of anti-aliased pixels")
    diff_color: RGB = Field(DEFAULT_DIFF_COLOR, description="Color of differing pixels")
    diff_color_alt: Optional[RGB] = Field(None, description="Color of pixels that got darker")
    diff_mask: bool = Field(False, description="Draw the diff over a transparent background")

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidOptionError(f"Invalid options: {_format_validation_error(e)}") from e

    @field_validator('aa_color', 'diff_color', 'diff_color_alt')
    @classmethod
    def validate_color(cls, v: Optional[RGB]) -> Optional[RGB]:
        return _check_rgb(v)


class OptionsFileV1(Options):
    """YAML file format: options plus a schema tag."""
    schema_version: str = Field(SCHEMA_VERSION, alias="schema", description="Schema version")

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != SCHEMA_VERSION:
            raise ValueError(f"Expected schema '{SCHEMA_VERSION}', got '{v}'")
        return v

    def to_options(self) -> Options:
        return Options(**self.model_dump(exclude={'schema_version'}))


def build_options(
    base: Optional[Union[Options, Dict[str, Any]]] = None,
    **overrides: Any
) -> Options:
    """Build validated ``Options`` from a base and keyword overrides.

    Parameters
    ----------
    base : Options or dict, optional
        Starting values; defaults are used when None
    **overrides
        Field values replacing those of ``base``; ``None`` values are ignored
        except for ``diff_color_alt``

    Returns
    -------
    Options
        Validated, frozen options

    Raises
    ------
    InvalidOptionError
        If any field is out of range or unknown
    """
    if isinstance(base, Options):
        values = base.model_dump()
    else:
        values = dict(base or {})

    for key, val in overrides.items():
        if val is None and key != 'diff_color_alt':
            continue
        values[key] = val

    return Options(**values)


def load_options(path: Union[str, Path], **overrides: Any) -> Options:
    """Load and validate options from a pixelmatch.v1 YAML file.

    Parameters
    ----------
    path : Union[str, Path]
        Path to the YAML file
    **overrides
        Values replacing the file's (e.g., CLI flags)

    Returns
    -------
    Options
        Validated options

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    InvalidOptionError
        If schema or values fail validation (message carries the path)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Options file not found: {path}")

    data = fs.load_yaml(path) or {}
    if not isinstance(data, dict):
        raise InvalidOptionError(f"Options file {path} must contain a mapping, got {type(data).__name__}")

    try:
        file_opts = OptionsFileV1.model_validate(data).to_options()
    except ValidationError as e:
        raise InvalidOptionError(
            f"Options validation failed at {path}: {_format_validation_error(e)}"
        ) from e

    return build_options(file_opts, **overrides)
