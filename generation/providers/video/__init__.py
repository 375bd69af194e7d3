"""Sora video backends."""

from .dayuapi import DayuapiProvider
from .kie import KieProvider
from .sutu import SutuProvider
from .yunwu import YunwuProvider

__all__ = ["SutuProvider", "YunwuProvider", "DayuapiProvider", "KieProvider"]
