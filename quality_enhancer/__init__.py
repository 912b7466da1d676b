"""Quality Enhancer - Asset Enhancement Pipeline"""

from .effects import apply_effects, vignette_factor
from .kernels import box_blur
from .lighting import LIGHTING_PRESETS, apply_lighting
from .materials import MATERIAL_DATABASE, apply_material
from .noise import value_noise
from .pipeline import EnhancementPipeline, enhance, enhance_image
from .post_filters import apply_post_processing
from .raster import RasterBuffer
from .resampler import RESOLUTIONS, Resolution, bicubic_weights, resample
from .schemas import EnhancementConfig

__all__ = [
    'EnhancementPipeline',
    'EnhancementConfig',
    'RasterBuffer',
    'enhance',
    'enhance_image',
    'resample',
    'bicubic_weights',
    'Resolution',
    'RESOLUTIONS',
    'apply_material',
    'MATERIAL_DATABASE',
    'apply_lighting',
    'LIGHTING_PRESETS',
    'apply_effects',
    'vignette_factor',
    'apply_post_processing',
    'box_blur',
    'value_noise',
]
__version__ = '1.0.0'
