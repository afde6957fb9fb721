"""Event plugin layer — ordered enrichment pipeline plus pluggy discovery.

INVARIANT: a failing plugin aborts only its own stage, never the pipeline.
"""

from faultline.plugins.base import EventPlugin, PluginAction
from faultline.plugins.context import ContextData, EventPluginContext
from faultline.plugins.manager import PluginManager
from faultline.plugins.pipeline import EventPipeline

__all__ = [
    "ContextData",
    "EventPipeline",
    "EventPlugin",
    "EventPluginContext",
    "PluginAction",
    "PluginManager",
]
