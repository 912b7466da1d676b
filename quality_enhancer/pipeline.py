"""
Quality Enhancer - Pipeline Orchestrator
========================================
Runs the enhancement stages over one raster in a fixed order:

1. Resample (bicubic upscale to the requested resolution)
2. Material (procedural surface shading)
3. Lighting (preset lights, ambient occlusion, shadows)
4. Effects (bloom, depth of field, grain, grading, ...)
5. Post-Filter (sharpen, denoise, tone adjustments)

A stage whose config section is absent is skipped. The pipeline holds no state
between invocations, so independent images may be processed concurrently.
"""

import logging
from typing import Any, Mapping, Optional, Union

import numpy as np
from PIL import Image

from .effects import apply_effects
from .lighting import apply_lighting
from .materials import apply_material
from .post_filters import apply_post_processing
from .raster import RasterBuffer
from .resampler import get_resolution, resample
from .schemas import EnhancementConfig

logger = logging.getLogger(__name__)

ConfigLike = Union[EnhancementConfig, Mapping[str, Any]]


def _coerce_config(config: Optional[ConfigLike]) -> EnhancementConfig:
    if config is None:
        return EnhancementConfig()
    if isinstance(config, EnhancementConfig):
        return config
    return EnhancementConfig.model_validate(config)


class EnhancementPipeline:
    """
    Asset quality enhancement pipeline.

    One instance may be reused for many buffers; each call to process() is
    independent.
    """

    def __init__(self, config: Optional[ConfigLike] = None):
        """
        Initialize pipeline with configuration.

        Args:
            config: EnhancementConfig or an equivalent plain mapping

        Raises:
            pydantic.ValidationError: If the mapping is malformed
        """
        self.config = _coerce_config(config)

    def process(
        self,
        buffer: RasterBuffer,
        rng: Optional[np.random.Generator] = None
    ) -> RasterBuffer:
        """
        Enhance a single raster.

        Args:
            buffer: Input raster; never modified
            rng: Random source for stochastic passes (fresh if None)

        Returns:
            Enhanced raster, same size or larger
        """
        config = self.config
        if rng is None:
            rng = np.random.default_rng()

        result = buffer.copy()
        logger.info("Processing raster: %d×%d", result.width, result.height)

        # ======================================================================
        # Stage 1: Resample
        # ======================================================================
        if config.resolution is not None:
            target = get_resolution(config.resolution)
            if target is None:
                logger.debug("Unknown resolution %r, skipping resample", config.resolution)
            elif target.scale > 1:
                logger.info("Stage 1: Resample → %d×%d (%d×)",
                            target.width, target.height, target.scale)
                result = resample(result, target.width, target.height, target.scale)

        # ======================================================================
        # Stage 2: Material
        # ======================================================================
        if config.material is not None:
            logger.info("Stage 2: Material %s/%s",
                        config.material.category, config.material.material_type)
            apply_material(result, config.material.category, config.material.material_type, rng)

        # ======================================================================
        # Stage 3: Lighting
        # ======================================================================
        if config.lighting is not None:
            logger.info("Stage 3: Lighting (%s)", config.lighting.preset)
            apply_lighting(
                result,
                config.lighting.preset,
                ambient_occlusion=config.lighting.ambient_occlusion,
                shadows=config.lighting.shadows
            )

        # ======================================================================
        # Stage 4: Effects
        # ======================================================================
        if config.effects:
            logger.info("Stage 4: Effects (%s)", ", ".join(config.effects))
            apply_effects(result, config.effects, rng)

        # ======================================================================
        # Stage 5: Post-Filter
        # ======================================================================
        if config.post_processing:
            logger.info("Stage 5: Post-Filter (%s)", ", ".join(config.post_processing))
            apply_post_processing(result, config.post_processing)

        logger.info("Output: %d×%d", result.width, result.height)
        return result


# ==============================================================================
# Convenience Functions
# ==============================================================================

def enhance(
    buffer: RasterBuffer,
    config: Optional[ConfigLike] = None,
    seed: Optional[int] = None
) -> RasterBuffer:
    """
    Enhance a raster in one call.

    Args:
        buffer: Input raster
        config: EnhancementConfig or plain mapping
        seed: Seed for the stochastic passes; None for fresh randomness

    Returns:
        Enhanced raster
    """
    pipeline = EnhancementPipeline(config)
    return pipeline.process(buffer, rng=np.random.default_rng(seed))


def enhance_image(
    image: Image.Image,
    config: Optional[ConfigLike] = None,
    seed: Optional[int] = None
) -> Image.Image:
    """
    Enhance a PIL image; the result is always RGBA.

    Args:
        image: Input PIL image (any mode)
        config: EnhancementConfig or plain mapping
        seed: Seed for the stochastic passes

    Returns:
        Enhanced PIL RGBA image
    """
    enhanced = enhance(RasterBuffer.from_image(image), config, seed)
    return enhanced.to_image()
