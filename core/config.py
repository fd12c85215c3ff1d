"""
contractfuzz Configuration Manager
Handles YAML/JSON configuration and the per-path input files
"""

import json
import yaml
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from .logging import get_logger

logger = get_logger(__name__)

ALL = "all"


class FieldsFuzzingStrategy(str, Enum):
    """How RemoveFieldsFuzzer chooses the field sets it removes"""
    ONEBYONE = "ONEBYONE"
    SIZE = "SIZE"
    POWERSET = "POWERSET"


class EdgeSpacesStrategy(str, Enum):
    """What the service is expected to do with leading/trailing spaces"""
    TRIM_AND_VALIDATE = "trimAndValidate"
    VALIDATE_AND_TRIM = "validateAndTrim"

    @classmethod
    def from_value(cls, value: str) -> "EdgeSpacesStrategy":
        for strategy in cls:
            if strategy.value.lower() == value.lower():
                return strategy
        raise ValueError(f"Unsupported edge spaces strategy: {value}")


@dataclass
class TargetConfig:
    """Target configuration"""
    contract: Optional[str] = None
    server: Optional[str] = None
    timeout: float = 10.0
    verify_ssl: bool = True


@dataclass
class FuzzingConfig:
    """Fuzzing configuration"""
    fuzzers: List[str] = field(default_factory=lambda: [ALL])
    paths: List[str] = field(default_factory=lambda: [ALL])
    fields_fuzzing_strategy: FieldsFuzzingStrategy = FieldsFuzzingStrategy.ONEBYONE
    max_fields_to_remove: Optional[int] = None
    edge_spaces_strategy: EdgeSpacesStrategy = EdgeSpacesStrategy.TRIM_AND_VALIDATE
    url_params: Dict[str, str] = field(default_factory=dict)

    @property
    def all_paths(self) -> bool:
        return not self.paths or any(path.lower() == ALL for path in self.paths)


@dataclass
class InputFilesConfig:
    """Optional input files"""
    ref_data: Optional[str] = None
    headers: Optional[str] = None
    custom_fuzzer: Optional[str] = None


@dataclass
class ReportConfig:
    """Logging and reporting configuration"""
    reporting_level: str = "info"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    json_logs: bool = False
    package_log_levels: List[str] = field(default_factory=list)


@dataclass
class ContractFuzzConfig:
    """Main contractfuzz configuration"""
    target: TargetConfig = field(default_factory=TargetConfig)
    fuzzing: FuzzingConfig = field(default_factory=FuzzingConfig)
    files: InputFilesConfig = field(default_factory=InputFilesConfig)
    reporting: ReportConfig = field(default_factory=ReportConfig)


def split_list(value: Optional[str], separator: str) -> List[str]:
    """Split a CLI list value, dropping blanks"""
    if not value:
        return []
    return [item.strip() for item in value.split(separator) if item.strip()]


def parse_url_params(value: Optional[str]) -> Dict[str, str]:
    """
    Parse ``name:value;name2:value2`` into a dictionary

    Raises:
        ValueError: If an entry has no ``:`` separator
    """
    params = {}
    for entry in split_list(value, ";"):
        name, separator, param_value = entry.partition(":")
        if not separator or not name.strip():
            raise ValueError(f"Invalid URL parameter '{entry}', expected NAME:VALUE")
        params[name.strip()] = param_value.strip()
    return params


def load_yaml_file(file_path: str) -> Dict[str, Any]:
    """
    Load a YAML mapping file

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid YAML or not a mapping
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML format in {file_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {file_path}")
    return data


def load_per_path_values(file_path: Optional[str]) -> Dict[str, Dict[str, Any]]:
    """
    Load a reference data or headers file

    Both files map a contract path (or ``all``) to a ``name -> value`` mapping.
    """
    if not file_path:
        return {}

    data = load_yaml_file(file_path)
    result: Dict[str, Dict[str, Any]] = {}
    for path, values in data.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ValueError(f"Entry '{path}' in {file_path} must be a mapping")
        result[str(path)] = dict(values)

    logger.debug("Per path values loaded", file=file_path, paths=len(result))
    return result


def values_for_path(per_path: Dict[str, Dict[str, Any]], path: str) -> Dict[str, Any]:
    """Merge the ``all`` entry with the path specific entry, path wins"""
    return {**per_path.get(ALL, {}), **per_path.get(path, {})}


def validate_config(config: ContractFuzzConfig) -> List[str]:
    """
    Validate a configuration

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not config.target.contract or not config.target.server:
        errors.append(
            "Missing or invalid required parameters 'contract' or 'server'. "
            "Usage: contractfuzz --server=URL --contract=LOCATION"
        )

    input_files = [
        ("refData", config.files.ref_data),
        ("headers", config.files.headers),
        ("customFuzzerFile", config.files.custom_fuzzer),
    ]
    for option, file_path in input_files:
        if file_path and not Path(file_path).exists():
            errors.append(f"File supplied for '{option}' not found: {file_path}")

    max_fields = config.fuzzing.max_fields_to_remove
    if max_fields is not None and max_fields < 1:
        errors.append("maxFieldsToRemove must be a positive number")

    return errors


class ConfigurationManager:
    """
    Configuration Manager with YAML/JSON support
    """

    def __init__(self):
        self.config: Optional[ContractFuzzConfig] = None
        self.logger = get_logger(__name__)

    def load_config_from_dict(self, config_data: Dict[str, Any]) -> ContractFuzzConfig:
        """
        Load configuration from dictionary

        Args:
            config_data: Configuration dictionary

        Returns:
            ContractFuzzConfig instance

        Raises:
            ValueError: If configuration is invalid
        """
        self.logger.debug("Loading configuration from dictionary")
        self.config = self._dict_to_config(config_data)
        return self.config

    def load_config(self, config_path: str) -> ContractFuzzConfig:
        """
        Load configuration from YAML or JSON file

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If file format is unsupported or invalid
        """
        config_file = Path(config_path)

        if not config_file.exists():
            self.logger.error("Configuration file not found", path=config_path)
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        self.logger.info("Loading configuration", path=config_path)

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.suffix.lower() in ['.yaml', '.yml']:
                    config_data = yaml.safe_load(f) or {}
                elif config_file.suffix.lower() == '.json':
                    config_data = json.load(f)
                else:
                    raise ValueError(f"Unsupported config format: {config_file.suffix}")
        except yaml.YAMLError as e:
            self.logger.error("YAML parsing error", error=str(e))
            raise ValueError(f"Invalid YAML format: {e}")
        except json.JSONDecodeError as e:
            self.logger.error("JSON parsing error", error=str(e))
            raise ValueError(f"Invalid JSON format: {e}")

        self.config = self._dict_to_config(config_data)
        return self.config

    def _dict_to_config(self, config_data: Dict[str, Any]) -> ContractFuzzConfig:
        """Convert dictionary to ContractFuzzConfig"""
        try:
            target = TargetConfig(**config_data.get('target', {}))
            fuzzing = self._build_fuzzing_config(config_data.get('fuzzing', {}))
            files = InputFilesConfig(**config_data.get('files', {}))
            reporting = ReportConfig(**config_data.get('reporting', {}))
        except (TypeError, ValueError) as e:
            self.logger.error("Configuration validation failed", error=str(e))
            raise ValueError(f"Configuration validation failed: {e}")

        return ContractFuzzConfig(
            target=target,
            fuzzing=fuzzing,
            files=files,
            reporting=reporting
        )

    def _build_fuzzing_config(self, data: Dict[str, Any]) -> FuzzingConfig:
        """Build fuzzing configuration from dict"""
        fuzzers = data.get('fuzzers', [ALL])
        if isinstance(fuzzers, str):
            fuzzers = split_list(fuzzers, ",")

        paths = data.get('paths', [ALL])
        if isinstance(paths, str):
            paths = split_list(paths, ";")

        url_params = data.get('url_params', {})
        if isinstance(url_params, str):
            url_params = parse_url_params(url_params)

        max_fields = data.get('max_fields_to_remove')

        return FuzzingConfig(
            fuzzers=list(fuzzers) or [ALL],
            paths=list(paths) or [ALL],
            fields_fuzzing_strategy=FieldsFuzzingStrategy(
                str(data.get('fields_fuzzing_strategy', FieldsFuzzingStrategy.ONEBYONE.value)).upper()
            ),
            max_fields_to_remove=int(max_fields) if max_fields is not None else None,
            edge_spaces_strategy=EdgeSpacesStrategy.from_value(
                data.get('edge_spaces_strategy', EdgeSpacesStrategy.TRIM_AND_VALIDATE.value)
            ),
            url_params=dict(url_params)
        )

    def validate_configuration(self) -> List[str]:
        """
        Validate current configuration

        Returns:
            List of validation errors (empty if valid)
        """
        if not self.config:
            return ["No configuration loaded"]
        return validate_config(self.config)

    def merge_cli_overrides(self, cli_args: Dict[str, Any]) -> None:
        """
        Merge CLI arguments with configuration

        Only keys with a value other than None are applied.
        """
        if not self.config:
            raise ValueError("No configuration loaded")

        overrides = {key: value for key, value in cli_args.items() if value is not None}
        self.logger.debug("Merging CLI overrides", overrides=sorted(overrides.keys()))

        target = self.config.target
        fuzzing = self.config.fuzzing
        files = self.config.files
        reporting = self.config.reporting

        if 'contract' in overrides:
            target.contract = overrides['contract']
        if 'server' in overrides:
            target.server = overrides['server']
        if 'timeout' in overrides:
            target.timeout = float(overrides['timeout'])

        if 'fuzzers' in overrides:
            fuzzing.fuzzers = split_list(overrides['fuzzers'], ",") or [ALL]
        if 'paths' in overrides:
            fuzzing.paths = split_list(overrides['paths'], ";") or [ALL]
        if 'fields_fuzzing_strategy' in overrides:
            fuzzing.fields_fuzzing_strategy = FieldsFuzzingStrategy(overrides['fields_fuzzing_strategy'].upper())
        if 'max_fields_to_remove' in overrides:
            fuzzing.max_fields_to_remove = int(overrides['max_fields_to_remove'])
        if 'edge_spaces_strategy' in overrides:
            fuzzing.edge_spaces_strategy = EdgeSpacesStrategy.from_value(overrides['edge_spaces_strategy'])
        if 'url_params' in overrides:
            fuzzing.url_params = parse_url_params(overrides['url_params'])

        if 'ref_data' in overrides:
            files.ref_data = overrides['ref_data']
        if 'headers' in overrides:
            files.headers = overrides['headers']
        if 'custom_fuzzer' in overrides:
            files.custom_fuzzer = overrides['custom_fuzzer']

        if 'reporting_level' in overrides:
            reporting.reporting_level = overrides['reporting_level']
        if 'log_level' in overrides:
            reporting.log_level = overrides['log_level']
        if 'log_file' in overrides:
            reporting.log_file = overrides['log_file']
        if 'json_logs' in overrides:
            reporting.json_logs = bool(overrides['json_logs'])
        if 'package_log_levels' in overrides:
            reporting.package_log_levels = list(overrides['package_log_levels'])
