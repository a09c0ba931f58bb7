"""Core services: link resolver, stores, share intake, conversion workflow."""
from beatbridge.core.link_resolver import LinkResolver
from beatbridge.core.workflow import ConversionWorkflow

__all__ = ["ConversionWorkflow", "LinkResolver"]
