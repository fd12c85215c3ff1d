"""
contractfuzz Core Engine
Session driver: validates the configuration, loads the inputs and runs the fuzz pass
"""

from dataclasses import dataclass
from typing import Dict, Optional
from uuid import uuid4

from .config import ContractFuzzConfig, load_per_path_values, validate_config
from .logging import get_logger
from utils.contract_loader import Contract, ContractError, load_contract
from utils.http_client import ServiceCaller
from utils.test_case_listener import TestCaseListener


@dataclass(frozen=True)
class RunOutcome:
    """Result of a session, either completed or aborted with a reason"""
    aborted: bool = False
    reason: Optional[str] = None

    @classmethod
    def proceed(cls) -> "RunOutcome":
        return cls()

    @classmethod
    def abort(cls, reason: str) -> "RunOutcome":
        return cls(aborted=True, reason=reason)

    @property
    def exit_code(self) -> int:
        return 1 if self.aborted else 0


class ContractFuzzCore:
    """
    contractfuzz Core Engine

    Responsibilities:
    - Validate the configuration and load the contract and input files
    - Wire the service caller, listener, registry and orchestrator
    - Bracket the run with the listener session, whatever its outcome

    Fatal conditions are returned as an aborted ``RunOutcome``.
    """

    def __init__(self, config: ContractFuzzConfig,
                 listener: Optional[TestCaseListener] = None,
                 service_caller: Optional[ServiceCaller] = None):
        """
        Initialize contractfuzz Core Engine

        Args:
            config: contractfuzz configuration
            listener: Session listener, a new one by default
            service_caller: Transport, built from the target configuration by default
        """
        self.config = config
        self.session_id = str(uuid4())
        self.logger = get_logger(__name__).bind(session_id=self.session_id)
        self.listener = listener or TestCaseListener()
        self.service_caller = service_caller
        self.contract: Optional[Contract] = None
        self.orchestrator = None
        self.invocations: Dict[str, int] = {}

    async def run(self) -> RunOutcome:
        """
        Execute a complete fuzzing session

        The summary line is logged and the transport closed on every path.
        """
        self.listener.start_session()
        try:
            return await self._run()
        finally:
            self.listener.end_session()
            if self.service_caller is not None:
                await self.service_caller.close()

    async def _run(self) -> RunOutcome:
        errors = validate_config(self.config)
        if errors:
            for error in errors[1:]:
                self.logger.warning("Configuration problem", error=error)
            return self._abort(errors[0])

        try:
            self.contract = load_contract(self.config.target.contract)
        except ContractError as e:
            return self._abort(str(e))

        from modules.fuzzing.custom import load_custom_tests
        from modules.fuzzing.data import FuzzingDataFactory
        from modules.fuzzing.orchestrator import FuzzingOrchestrator
        from modules.fuzzing.registry import FuzzerRegistry

        files = self.config.files
        try:
            ref_data = load_per_path_values(files.ref_data)
            headers = load_per_path_values(files.headers)
            custom_tests = load_custom_tests(files.custom_fuzzer)
        except (OSError, ValueError) as e:
            return self._abort(str(e))

        if self.service_caller is None:
            self.service_caller = ServiceCaller(
                server=self.config.target.server,
                timeout=self.config.target.timeout,
                verify_ssl=self.config.target.verify_ssl,
                url_params=self.config.fuzzing.url_params
            )

        registry = FuzzerRegistry.default(
            self.service_caller,
            self.listener,
            self.config.fuzzing,
            custom_tests=custom_tests
        )
        self.orchestrator = FuzzingOrchestrator(
            contract=self.contract,
            registry=registry,
            factory=FuzzingDataFactory(ref_data, headers),
            config=self.config.fuzzing
        )

        self.logger.info("Starting contractfuzz session",
                         contract=self.config.target.contract,
                         title=self.contract.title,
                         api_version=self.contract.version,
                         server=self.config.target.server)
        self.invocations = await self.orchestrator.start_fuzzing()
        return RunOutcome.proceed()

    def _abort(self, reason: str) -> RunOutcome:
        self.logger.error("Aborting run", reason=reason)
        return RunOutcome.abort(reason)
