"""Renderer interface for frame snapshots."""
from .renderer import Renderer, LoggingRenderer

__all__ = ['Renderer', 'LoggingRenderer']
