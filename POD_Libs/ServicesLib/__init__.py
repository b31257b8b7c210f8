"""
ServicesLib - Collaborator services

Generation provider chain and the persistent configuration store.
"""

from POD_Libs.ServicesLib.generation import (
    CallableProvider,
    GenerationProvider,
    GenerationResult,
    ProviderChain,
    build_fill_instruction,
    classify_http_status,
)
from POD_Libs.ServicesLib.config_store import ConfigStore

__all__ = [
    "CallableProvider",
    "GenerationProvider",
    "GenerationResult",
    "ProviderChain",
    "build_fill_instruction",
    "classify_http_status",
    "ConfigStore",
]
