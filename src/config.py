"""Configuration module for the DNS whitelist resolver.

Loads and validates environment variables and the whitelist zone file.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List


def load_zone_config(lines: Iterable[str]) -> Dict[str, str]:
    """Parse whitelist zone lines into a zone to label mapping.

    Each line is "<zone-domain> <optional-label>". Blank lines and "#"
    comments are skipped; tokens past the second are ignored. A zone
    listed twice keeps its first label.

    Args:
        lines: Raw lines of the zone file.

    Returns:
        Dict[str, str]: Zone domain to label, in file order.

    Examples:
        >>> load_zone_config(["list.dnswl.org dnswl", "# comment", ""])
        {'list.dnswl.org': 'dnswl'}
    """
    zones: Dict[str, str] = {}

    for line in lines:
        tokens = line.split("#", 1)[0].split()
        if not tokens:
            continue

        zone = tokens[0]
        label = tokens[1] if len(tokens) > 1 else ""
        zones.setdefault(zone, label)

    return zones


def read_zone_file(path: str) -> Dict[str, str]:
    """Load whitelist zones from a file.

    Raises:
        ValueError: If the file cannot be read.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return load_zone_config(f)
    except OSError as e:
        raise ValueError(f"Cannot read whitelist zone file {path}: {e}") from e


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Whitelist Configuration
    zones: Dict[str, str] = field(default_factory=dict)

    # DNS Configuration
    dns_wait_timeout: float = 4.0
    dns_read_timeout: float = 1.0
    dns_nameservers: List[str] = field(default_factory=list)
    dns_port: int = 53

    # Operational Configuration
    decision_attempts: int = 1
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ValueError: If variables are invalid or the zone file is unreadable.

        Returns:
            Config: Validated configuration instance.
        """
        # Whitelist Configuration (no file means no zones, not an error)
        zones_file = os.getenv("WHITELIST_ZONES_FILE")
        zones = read_zone_file(zones_file) if zones_file else {}

        # DNS Configuration
        dns_wait_timeout = cls._get_float_env("DNS_WAIT_TIMEOUT", "4")
        if not 0 < dns_wait_timeout <= 60:
            raise ValueError("DNS_WAIT_TIMEOUT must be between 0 and 60 seconds")

        dns_read_timeout = cls._get_float_env("DNS_READ_TIMEOUT", "1")
        if not 0 < dns_read_timeout <= 30:
            raise ValueError("DNS_READ_TIMEOUT must be between 0 and 30 seconds")

        dns_nameservers_str = os.getenv("DNS_NAMESERVERS", "")
        dns_nameservers = [
            ns.strip() for ns in dns_nameservers_str.split(",") if ns.strip()
        ]

        dns_port = cls._get_int_env("DNS_PORT", "53")
        if not 1 <= dns_port <= 65535:
            raise ValueError("DNS_PORT must be between 1 and 65535")

        # Operational Configuration
        decision_attempts = cls._get_int_env("DECISION_ATTEMPTS", "1")
        if not 1 <= decision_attempts <= 10:
            raise ValueError("DECISION_ATTEMPTS must be between 1 and 10")

        verbose_str = os.getenv("VERBOSE", "false").lower()
        verbose = verbose_str in ("true", "1", "yes")

        return cls(
            zones=zones,
            dns_wait_timeout=dns_wait_timeout,
            dns_read_timeout=dns_read_timeout,
            dns_nameservers=dns_nameservers,
            dns_port=dns_port,
            decision_attempts=decision_attempts,
            verbose=verbose,
        )

    @staticmethod
    def _get_int_env(key: str, default: str) -> int:
        """Get integer environment variable or raise ValueError.

        Args:
            key: Environment variable name.
            default: Value used when the variable is unset.

        Returns:
            int: Parsed value.

        Raises:
            ValueError: If the value is not an integer.
        """
        value = os.getenv(key, default)
        try:
            return int(value)
        except ValueError as e:
            raise ValueError(f"{key} must be an integer, got {value!r}") from e

    @staticmethod
    def _get_float_env(key: str, default: str) -> float:
        """Get numeric environment variable or raise ValueError.

        Args:
            key: Environment variable name.
            default: Value used when the variable is unset.

        Returns:
            float: Parsed value.

        Raises:
            ValueError: If the value is not a number.
        """
        value = os.getenv(key, default)
        try:
            return float(value)
        except ValueError as e:
            raise ValueError(f"{key} must be a number, got {value!r}") from e
