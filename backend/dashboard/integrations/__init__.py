"""
Integration plugins

Each integration implements the IntegrationDefinition contract and is made
available through an IntegrationRegistry.
"""
from .base import (
    AccountConfig,
    CredentialField,
    DataFetcher,
    IntegrationDefinition,
    MetricTypeDefinition,
    NormalizedMetric,
    RequiredPermission,
    StepRunner,
    SyncResult,
    SyncStep,
)
from .http import ApiSessionPool, IntegrationApiError, get_api_session_pool
from .registry import BUILTIN_INTEGRATIONS, IntegrationRegistry

__all__ = [
    'AccountConfig',
    'CredentialField',
    'DataFetcher',
    'IntegrationDefinition',
    'MetricTypeDefinition',
    'NormalizedMetric',
    'RequiredPermission',
    'StepRunner',
    'SyncResult',
    'SyncStep',
    'ApiSessionPool',
    'IntegrationApiError',
    'get_api_session_pool',
    'BUILTIN_INTEGRATIONS',
    'IntegrationRegistry',
]
