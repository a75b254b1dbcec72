"""Control smoothing and parameter mapping."""
from .smoother import GestureSmoother
from .param_mapper import MappedParameters, map_parameters, yaw_detent

__all__ = [
    'GestureSmoother',
    'MappedParameters',
    'map_parameters',
    'yaw_detent',
]
