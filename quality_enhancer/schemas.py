"""
Quality Enhancer - Configuration Schemas
========================================
Pydantic models for the enhancement configuration handed in by asset
generators.

Effects and post-processing filters form closed tagged unions discriminated on
`kind`. The config maps are keyed by effect/filter name; entries whose name is
not recognized are dropped while validating, so a stage never sees them.
"""

import logging
from types import MappingProxyType
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class ParamsModel(BaseModel):
    """Base for all config records: immutable, camelCase or snake_case keys."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


def _as_vector(value: Any, axes: str) -> Any:
    """Accept {'x': .., 'y': ..} mappings as well as sequences."""
    if isinstance(value, Mapping):
        return tuple(float(value.get(axis, 0.0)) for axis in axes)
    return value


# ==============================================================================
# Effects
# ==============================================================================

class BloomParams(ParamsModel):
    kind: Literal['bloom'] = 'bloom'
    intensity: float = 0.3
    radius: int = Field(2, ge=0)
    threshold: float = 0.8


class DepthOfFieldParams(ParamsModel):
    kind: Literal['depthOfField'] = 'depthOfField'
    focal_distance: float = 0.5
    aperture: float = 0.1
    blur_strength: float = 0.5


class MotionBlurParams(ParamsModel):
    kind: Literal['motionBlur'] = 'motionBlur'
    strength: float = 0.2
    direction: Tuple[float, float] = (1.0, 0.0)

    @field_validator('direction', mode='before')
    @classmethod
    def _direction(cls, value):
        return _as_vector(value, 'xy')


class ChromaticAberrationParams(ParamsModel):
    kind: Literal['chromaticAberration'] = 'chromaticAberration'
    strength: float = 0.01
    direction: Tuple[float, float] = (1.0, 0.0)

    @field_validator('direction', mode='before')
    @classmethod
    def _direction(cls, value):
        return _as_vector(value, 'xy')


class VignetteParams(ParamsModel):
    kind: Literal['vignette'] = 'vignette'
    intensity: float = 0.2
    radius: float = 0.8


class FilmGrainParams(ParamsModel):
    kind: Literal['filmGrain'] = 'filmGrain'
    intensity: float = 0.05
    size: float = 1.0


class ColorGradingParams(ParamsModel):
    """
    Contrast, saturation and brightness in one pass.

    `temperature` (Kelvin) is accepted for compatibility with existing configs
    but no white-balance transform is applied.
    """
    kind: Literal['colorGrading'] = 'colorGrading'
    contrast: float = 1.1
    saturation: float = 1.05
    brightness: float = 1.0
    temperature: float = 6500.0


EffectParams = Annotated[
    Union[
        BloomParams,
        DepthOfFieldParams,
        MotionBlurParams,
        ChromaticAberrationParams,
        VignetteParams,
        FilmGrainParams,
        ColorGradingParams,
    ],
    Field(discriminator='kind'),
]

EFFECT_NAMES = frozenset({
    'bloom', 'depthOfField', 'motionBlur', 'chromaticAberration',
    'vignette', 'filmGrain', 'colorGrading',
})


# ==============================================================================
# Post-Processing Filters
# ==============================================================================

class SharpenParams(ParamsModel):
    kind: Literal['sharpen'] = 'sharpen'
    strength: float = 0.5


class DenoiseParams(ParamsModel):
    kind: Literal['denoise'] = 'denoise'
    strength: float = 0.3


class ContrastParams(ParamsModel):
    kind: Literal['contrast'] = 'contrast'
    adjustment: float = 1.2


class SaturationParams(ParamsModel):
    kind: Literal['saturation'] = 'saturation'
    adjustment: float = 1.1


class BrightnessParams(ParamsModel):
    kind: Literal['brightness'] = 'brightness'
    adjustment: float = 1.05


class GammaParams(ParamsModel):
    kind: Literal['gamma'] = 'gamma'
    adjustment: float = Field(1.1, gt=0)


class VibranceParams(ParamsModel):
    kind: Literal['vibrance'] = 'vibrance'
    adjustment: float = 1.15


FilterParams = Annotated[
    Union[
        SharpenParams,
        DenoiseParams,
        ContrastParams,
        SaturationParams,
        BrightnessParams,
        GammaParams,
        VibranceParams,
    ],
    Field(discriminator='kind'),
]

# Filter name -> the single parameter a bare number sets
FILTER_SCALAR_FIELDS = {
    'sharpen': 'strength',
    'denoise': 'strength',
    'contrast': 'adjustment',
    'saturation': 'adjustment',
    'brightness': 'adjustment',
    'gamma': 'adjustment',
    'vibrance': 'adjustment',
}


def _tag_entries(entries: Any, known, section: str, scalar_fields=None) -> Any:
    """
    Stamp each known entry with its `kind` and drop unknown names.

    Insertion order of the surviving entries is preserved.
    """
    if entries is None or not isinstance(entries, Mapping):
        return entries

    tagged: Dict[str, Any] = {}
    for name, params in entries.items():
        if name not in known:
            logger.debug("Ignoring unknown %s %r", section, name)
            continue
        if isinstance(params, BaseModel):
            tagged[name] = params
        elif isinstance(params, Mapping):
            tagged[name] = {**params, 'kind': name}
        elif params is None:
            tagged[name] = {'kind': name}
        elif scalar_fields and isinstance(params, (int, float)) and not isinstance(params, bool):
            tagged[name] = {'kind': name, scalar_fields[name]: params}
        else:
            tagged[name] = params
    return tagged


# ==============================================================================
# Sections
# ==============================================================================

class MaterialConfig(ParamsModel):
    category: str
    material_type: str = Field(alias='type')


class AmbientOcclusionParams(ParamsModel):
    intensity: float


class ShadowParams(ParamsModel):
    intensity: float
    direction: Tuple[float, float, float] = (1.0, -1.0, 1.0)

    @field_validator('direction', mode='before')
    @classmethod
    def _direction(cls, value):
        return _as_vector(value, 'xyz')


class LightingConfig(ParamsModel):
    preset: str
    ambient_occlusion: Optional[AmbientOcclusionParams] = None
    shadows: Optional[ShadowParams] = None


class EnhancementConfig(ParamsModel):
    """
    Full enhancement request. Every section is optional; a missing section
    skips its stage.

    Example:
        EnhancementConfig.model_validate({
            'resolution': 'medium',
            'material': {'category': 'metals', 'type': 'gold'},
            'lighting': {'preset': 'studio'},
            'effects': {'bloom': {'intensity': 0.4}},
            'postProcessing': {'sharpen': {'strength': 0.2}},
        })
    """
    resolution: Optional[str] = None
    material: Optional[MaterialConfig] = None
    lighting: Optional[LightingConfig] = None
    effects: Optional[Mapping[str, EffectParams]] = None
    post_processing: Optional[Mapping[str, FilterParams]] = None

    @field_validator('effects', mode='before')
    @classmethod
    def _known_effects(cls, value):
        return _tag_entries(value, EFFECT_NAMES, 'effect')

    @field_validator('post_processing', mode='before')
    @classmethod
    def _known_filters(cls, value):
        return _tag_entries(value, FILTER_SCALAR_FIELDS, 'post-processing filter', FILTER_SCALAR_FIELDS)

    @field_validator('effects', 'post_processing', mode='after')
    @classmethod
    def _read_only(cls, value):
        return None if value is None else MappingProxyType(dict(value))

    @field_serializer('effects', 'post_processing', mode='wrap')
    def _plain_dict(self, value, handler):
        return handler(None if value is None else dict(value))

    def as_dict(self) -> Dict[str, Any]:
        """Export configuration as a camelCase dictionary."""
        return self.model_dump(by_alias=True, exclude_none=True)
