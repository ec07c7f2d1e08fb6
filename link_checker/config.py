"""
Configuration management for link checker
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml

from .classifier import ClassifierConfig


DEFAULT_REMOTE_SOURCE = "https://raw.githubusercontent.com/sakibzzz641/ftpchecker/main/BDIX_url.txt"


@dataclass
class ScanConfigSettings:
    """Scan-related configuration"""
    batch_size: int = 12
    probe_timeout_ms: int = 5000
    slow_threshold_ms: int = 1000
    max_retries: int = 3
    retry_probes: bool = False
    follow_redirects: bool = True
    user_agent: str = "link-checker/1.0"
    enable_tui: bool = False


@dataclass
class ClassifierConfigSettings:
    """HTTP status code sets used to classify probe results"""
    blocked_codes: List[int] = field(default_factory=lambda: [401, 403, 407, 451])
    failed_codes: List[int] = field(default_factory=lambda: [500, 502, 503, 504])
    redirect_codes: List[int] = field(default_factory=lambda: [301, 302, 303, 307, 308])


@dataclass
class IngestConfig:
    """Link import configuration"""
    remote_source_url: str = DEFAULT_REMOTE_SOURCE
    default_category: str = "Remote"
    fetch_timeout_ms: int = 15000


@dataclass
class StoreConfig:
    """Link snapshot configuration"""
    links_file: str = "links.json"


@dataclass
class Config:
    """Main configuration class for link checker"""
    scan: ScanConfigSettings = field(default_factory=ScanConfigSettings)
    classifier: ClassifierConfigSettings = field(default_factory=ClassifierConfigSettings)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    store: StoreConfig = field(default_factory=StoreConfig)

    _instance: Optional["Config"] = field(default=None, init=False, repr=False)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file or use defaults.

        Args:
            config_path: Path to config file. Defaults to config.yaml in project root.

        Returns:
            Config instance with loaded or default settings.
        """
        if config_path is None:
            config_path = Path("config.yaml")

        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "scan" in data:
            scan_data = data["scan"] or {}
            for key in ["batch_size", "probe_timeout_ms", "slow_threshold_ms",
                        "max_retries", "retry_probes", "follow_redirects",
                        "user_agent", "enable_tui"]:
                if key in scan_data:
                    setattr(config.scan, key, scan_data[key])
            if config.scan.batch_size < 1:
                raise ValueError(f"scan.batch_size must be at least 1, got {config.scan.batch_size}")

        if "classifier" in data:
            class_data = data["classifier"] or {}
            for key in ["blocked_codes", "failed_codes", "redirect_codes"]:
                if key in class_data:
                    setattr(config.classifier, key, [int(code) for code in class_data[key]])

        if "ingest" in data:
            ingest_data = data["ingest"] or {}
            for key in ["remote_source_url", "default_category", "fetch_timeout_ms"]:
                if key in ingest_data:
                    setattr(config.ingest, key, ingest_data[key])

        if "store" in data:
            store_data = data["store"] or {}
            if "links_file" in store_data:
                config.store.links_file = store_data["links_file"]

        return config

    def classifier_config(self) -> ClassifierConfig:
        """Build the thresholds the classifier consumes from scan and classifier settings."""
        return ClassifierConfig(
            probe_timeout_ms=self.scan.probe_timeout_ms,
            slow_threshold_ms=self.scan.slow_threshold_ms,
            blocked_codes=frozenset(self.classifier.blocked_codes),
            failed_codes=frozenset(self.classifier.failed_codes),
            redirect_codes=frozenset(self.classifier.redirect_codes),
        )

    @classmethod
    def get_instance(cls, config_path: Optional[Path] = None) -> "Config":
        """Get singleton instance of Config.

        Args:
            config_path: Path to config file (only used on first call).

        Returns:
            Singleton Config instance.
        """
        if cls._instance is None:
            cls._instance = cls.load(config_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance (useful for testing)."""
        cls._instance = None


def get_config(config_path: Optional[Path] = None) -> Config:
    """Convenience function to get config singleton.

    Args:
        config_path: Path to config file (only used on first call).

    Returns:
        Config singleton instance.
    """
    return Config.get_instance(config_path)
