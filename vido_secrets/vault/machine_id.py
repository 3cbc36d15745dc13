"""
Machine identifier probes.

Used to derive a key when no ENCRYPTION_KEY is provisioned. Each platform
has its own probe; the hostname probe always answers and closes the chain.

Probes never touch the OS directly: file reads and command execution are
injected callables, so each one can be exercised without the real platform.
"""
import hashlib
import logging
import platform
import socket
import subprocess
from collections.abc import Callable, Iterable, Sequence
from typing import Optional, Protocol

from ..exceptions import MachineIdentifierNotFound
from .config import DEFAULT_MACHINE_ID_PATHS

logger = logging.getLogger("vido_secrets.vault")

HOSTNAME_SUFFIX = "vido-fallback"
UNKNOWN_HOST = "unknown-host"
COMMAND_TIMEOUT = 5.0

CommandRunner = Callable[[Sequence[str]], str]
FileReader = Callable[[str], str]


def run_command(args: Sequence[str]) -> str:
    """Run a command and return its stdout.

    Raises:
        OSError: If the executable cannot be started.
        subprocess.SubprocessError: On non-zero exit or timeout.
    """
    result = subprocess.run(
        list(args),
        capture_output=True,
        text=True,
        check=True,
        timeout=COMMAND_TIMEOUT,
    )
    return result.stdout


def read_file(path: str) -> str:
    with open(path, encoding="utf-8") as fp:
        return fp.read()


class MachineIdProbe(Protocol):
    """Capability: produce a stable machine identifier, or None."""

    def probe(self) -> Optional[str]:
        ...


class LinuxMachineId:
    """Reads the systemd/dbus machine-id files, first non-empty wins."""

    def __init__(
        self,
        paths: Sequence[str] = DEFAULT_MACHINE_ID_PATHS,
        reader: FileReader = read_file,
    ):
        self._paths = tuple(paths)
        self._read = reader

    def probe(self) -> Optional[str]:
        for path in self._paths:
            try:
                value = self._read(path).strip()
            except (OSError, UnicodeDecodeError) as err:
                logger.debug("Machine id file %s unreadable: %s", path, err)
                continue
            if value:
                return value
        return None


class DarwinMachineId:
    """Reads IOPlatformUUID from the IOKit registry via ``ioreg``."""

    command = ("ioreg", "-rd1", "-c", "IOPlatformExpertDevice")

    def __init__(self, runner: CommandRunner = run_command):
        self._run = runner

    def probe(self) -> Optional[str]:
        try:
            out = self._run(self.command)
        except (OSError, UnicodeDecodeError, subprocess.SubprocessError) as err:
            logger.debug("ioreg failed: %s", err)
            return None
        for line in out.splitlines():
            if "IOPlatformUUID" not in line:
                continue
            parts = line.split("=")
            if len(parts) == 2:
                uuid = parts[1].strip().strip('"')
                if uuid:
                    return uuid
        return None


class WindowsMachineId:
    """Reads MachineGuid from the registry via ``reg query``."""

    command = (
        "reg", "query",
        "HKEY_LOCAL_MACHINE\\SOFTWARE\\Microsoft\\Cryptography",
        "/v", "MachineGuid",
    )

    def __init__(self, runner: CommandRunner = run_command):
        self._run = runner

    def probe(self) -> Optional[str]:
        try:
            out = self._run(self.command)
        except (OSError, UnicodeDecodeError, subprocess.SubprocessError) as err:
            logger.debug("reg query failed: %s", err)
            return None
        for line in out.splitlines():
            if "MachineGuid" in line:
                fields = line.split()
                if len(fields) >= 3:
                    return fields[-1]
        return None


class HostnameMachineId:
    """Hash of the network hostname; always returns a value."""

    def __init__(self, gethostname: Callable[[], str] = socket.gethostname):
        self._gethostname = gethostname

    def probe(self) -> Optional[str]:
        try:
            hostname = self._gethostname()
        except OSError:
            hostname = UNKNOWN_HOST
        digest = hashlib.sha256((hostname + HOSTNAME_SUFFIX).encode("utf-8"))
        return digest.hexdigest()


def platform_probe(
    system: Optional[str] = None,
    runner: CommandRunner = run_command,
    paths: Sequence[str] = DEFAULT_MACHINE_ID_PATHS,
) -> Optional[MachineIdProbe]:
    """Return the probe for the given (or current) platform, None if unsupported."""
    system = system or platform.system()
    if system == "Linux":
        return LinuxMachineId(paths)
    if system == "Darwin":
        return DarwinMachineId(runner)
    if system == "Windows":
        return WindowsMachineId(runner)
    return None


class MachineIdResolver:
    """Tries each probe in order and returns the first identifier found."""

    def __init__(self, probes: Iterable[MachineIdProbe]):
        self._probes = list(probes)

    def resolve(self) -> str:
        """
        Raises:
            MachineIdentifierNotFound: If no probe produced an identifier.
        """
        for probe in self._probes:
            value = probe.probe()
            if value:
                logger.debug("Machine id resolved by %s", type(probe).__name__)
                return value
        raise MachineIdentifierNotFound()


def default_resolver(
    system: Optional[str] = None,
    runner: CommandRunner = run_command,
    paths: Sequence[str] = DEFAULT_MACHINE_ID_PATHS,
) -> MachineIdResolver:
    """Platform probe (when supported) followed by the hostname fallback."""
    probes: list[MachineIdProbe] = []
    native = platform_probe(system, runner, paths)
    if native is not None:
        probes.append(native)
    probes.append(HostnameMachineId())
    return MachineIdResolver(probes)
