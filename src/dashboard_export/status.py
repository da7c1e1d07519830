"""Gateway status probe.

Runs the gateway's own CLI and scrapes the facts the dashboard needs from
its human-readable output. Any failure degrades to default values.
"""

import logging
import os
import re
import subprocess

from dashboard_export.models import StatusFacts

logger = logging.getLogger("dashboard-export")

DEFAULT_BINARY = "clawdbot"
DEFAULT_TIMEOUT = 30

DEFAULT_MODEL_RE = re.compile(r"Default\s*:\s*(.+)")
FALLBACKS_RE = re.compile(r"Fallbacks\s*\((\d+)\)\s*:\s*(.+)")
AUTH_PROVIDER_RE = re.compile(r"^- (\w+)\s+effective=")


def parse_gateway_running(text: str | None) -> bool:
    """True if the gateway status output reports a running gateway."""
    if not text:
        return False
    return "running" in text or "Gateway is up" in text


def parse_default_model(text: str | None) -> str:
    match = DEFAULT_MODEL_RE.search(text or "")
    return match.group(1).strip() if match else "unknown"


def parse_fallbacks(text: str | None) -> str:
    """Fallback model list, as the free text following ``Fallbacks (N):``."""
    match = FALLBACKS_RE.search(text or "")
    return match.group(2).strip() if match else "none"


def parse_auth_providers(text: str | None) -> list[str]:
    """Provider names from unindented ``- <name> effective=...`` lines, in output order."""
    providers = []
    for line in (text or "").splitlines():
        if not line.strip().startswith("- "):
            continue
        # Indented lines are nested details, not providers
        match = AUTH_PROVIDER_RE.match(line)
        if match:
            providers.append(match.group(1))
    return providers


class StatusProbe:
    """Collects ``StatusFacts`` by running the gateway CLI."""

    def __init__(self, binary: str | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.binary = binary or os.environ.get("CLAWDBOT_BIN", DEFAULT_BINARY)
        self.timeout = timeout

    def run(self, *args: str) -> str | None:
        """Run ``<binary> <args>`` and return combined stdout/stderr, or None on failure."""
        cmd = [self.binary, *args]
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            logger.warning(f"Status command not found: {self.binary}")
            return None
        except subprocess.TimeoutExpired:
            logger.warning(f"Status command timed out after {self.timeout}s: {' '.join(cmd)}")
            return None
        except OSError as e:
            logger.warning(f"Could not run {' '.join(cmd)}: {e}")
            return None

        if result.returncode != 0:
            logger.warning(f"{' '.join(cmd)} exited with status {result.returncode}")
            return None
        return result.stdout

    def collect(self) -> StatusFacts:
        gateway_output = self.run("gateway", "status")
        models_output = self.run("models", "status")

        return StatusFacts(
            gateway_running=parse_gateway_running(gateway_output),
            primary_model=parse_default_model(models_output),
            fallbacks=parse_fallbacks(models_output),
            auth_providers=parse_auth_providers(models_output),
        )
