"""Tabulated functions of two variables and their building blocks."""

from .samples import *  # noqa
from .locator import *  # noqa
from .tabulated import *  # noqa
from .export import *  # noqa
