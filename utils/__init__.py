"""
contractfuzz Utilities Package
Collaborators of the fuzzing core: contract loading, transport and reporting
"""

from .http_client import ServiceCaller, Request, Response, RequestMethod
from .test_case_listener import TestCaseListener, ExecutionStatistics, ResponseCodeFamily, ResultKind
from .contract_loader import Contract, ContractError, load_contract

__all__ = [
    "ServiceCaller",
    "Request",
    "Response",
    "RequestMethod",
    "TestCaseListener",
    "ExecutionStatistics",
    "ResponseCodeFamily",
    "ResultKind",
    "Contract",
    "ContractError",
    "load_contract"
]
