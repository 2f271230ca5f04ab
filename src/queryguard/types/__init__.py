"""Type definitions for queryguard.

This module provides the request, response, schema and budget models used
throughout the package.
"""

from .base import QGBaseModel, WireModel
from .budget import BudgetState
from .query import (
    QueryRequest,
    QueryHandle,
    QueryPollResponse,
    QueryResult,
    ResultMetadata,
    FieldTypeDescriptor,
    RangedFieldTypes,
    QueryExecutionResult,
    VerificationNotification,
    QueryVerification,
)

__all__ = [
    'QGBaseModel',
    'WireModel',
    'BudgetState',
    'QueryRequest',
    'QueryHandle',
    'QueryPollResponse',
    'QueryResult',
    'ResultMetadata',
    'FieldTypeDescriptor',
    'RangedFieldTypes',
    'QueryExecutionResult',
    'VerificationNotification',
    'QueryVerification',
]
