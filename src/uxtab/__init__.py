"""
*uxtab*

Two-variable tabulated functions sampled uniformly along X and per-column along Y,
with bilinear interpolation and forward-mode derivative propagation.
"""

from .errors import *  # noqa
from .types import *  # noqa
from .config import *  # noqa
from .evaluation import *  # noqa
from .tables import *  # noqa
