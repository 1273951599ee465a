"""
Liquid Glass Magnifier Package

Renders circular magnifying lenses with edge refraction, rim lighting and a
specular highlight over a raster image, plus a pygame front end for placing
lenses and exporting the result.
"""

from .config import GlassConfig, SessionConfig, MagnifierConfig
from .raster import Raster, PixelSampler
from .lenses import LensDescriptor, LensStack
from .lens_renderer import LensRenderer, LensPatch, RenderTarget
from .scene import render_frame, render_export, fit_display_size
from .session import LensSession
from .application import MagnifierApp

__all__ = [
    'GlassConfig',
    'SessionConfig',
    'MagnifierConfig',
    'Raster',
    'PixelSampler',
    'LensDescriptor',
    'LensStack',
    'LensRenderer',
    'LensPatch',
    'RenderTarget',
    'render_frame',
    'render_export',
    'fit_display_size',
    'LensSession',
    'MagnifierApp'
]

__version__ = '1.0.0'
