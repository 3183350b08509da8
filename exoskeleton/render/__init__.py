# Rendering package
from .visual_config import VisualConfig, parse_visual_config, build_config
from .pipeline import Renderer, RenderingPipeline, build_renderer
from .fallback import render_fallback
from .metadata import build_metadata, encode_token_uri, render_image

__all__ = [
    "VisualConfig", "parse_visual_config", "build_config",
    "Renderer", "RenderingPipeline", "build_renderer",
    "render_fallback",
    "build_metadata", "encode_token_uri", "render_image",
]
