"""Context creation, plugin loading and YAML parsing.

The primary public entry points are `TestContextFactory`, which creates
fresh contexts with built-in and plugin-provided extensions registered,
and `CaseParser`, which turns YAML document streams into test cases.
"""

from .factory import TestContextFactory
from .loader import PLUGINS_GROUP, PluginLoaderMixin
from .parser import CaseHeader, CaseParser, document_model

__all__ = (
    'PLUGINS_GROUP',
    'CaseHeader',
    'CaseParser',
    'PluginLoaderMixin',
    'TestContextFactory',
    'document_model',
)
