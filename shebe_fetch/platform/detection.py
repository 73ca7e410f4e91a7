"""Host platform detection.

This module provides the enums describing a host (OS, CPU architecture,
C library) and `detect_platform()`, which introspects the running process
once and returns an immutable PlatformDescriptor. The acquirer receives the
detector as a parameter so tests can substitute a fixed descriptor.
"""

from __future__ import annotations

import os as _os
import platform as _platform
import sys as _sys
from dataclasses import dataclass
from enum import Enum, auto
from functools import lru_cache
from pathlib import Path

__all__ = [
    "Os",
    "Arch",
    "Libc",
    "PlatformDescriptor",
    "detect_os",
    "detect_arch",
    "detect_libc",
    "detect_platform",
    "parse_os",
    "parse_arch",
    "parse_libc",
]


class Os(Enum):
    """Operating system."""

    MACOS = auto()
    LINUX = auto()
    WINDOWS = auto()
    OTHER = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_unix(self) -> bool:
        """Check if this is a Unix-like OS (Linux or macOS)."""
        return self in (Os.LINUX, Os.MACOS)

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self == Os.WINDOWS else ""


class Arch(Enum):
    """CPU architecture."""

    ARM64 = auto()
    X86_64 = auto()
    X86 = auto()
    OTHER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class Libc(Enum):
    """C library flavour (Linux only; UNKNOWN elsewhere)."""

    GNU = auto()
    MUSL = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class PlatformDescriptor:
    """Immutable description of a host.

    Unsupported combinations are representable on purpose; whether an asset
    exists for a descriptor is decided by the asset mapping, not here.
    """

    os: Os
    arch: Arch
    libc: Libc = Libc.UNKNOWN

    @property
    def is_unix(self) -> bool:
        return self.os.is_unix

    def exe_name(self, name: str) -> str:
        """Executable file name with the OS-appropriate suffix."""
        return f"{name}{self.os.exe_suffix}"

    def __str__(self) -> str:
        if self.os == Os.LINUX and self.libc != Libc.UNKNOWN:
            return f"{self.os}-{self.arch}-{self.libc}"
        return f"{self.os}-{self.arch}"


def detect_os() -> Os:
    """Detect the current operating system."""
    system = _sys.platform.lower()
    if system.startswith("linux"):
        return Os.LINUX
    if system.startswith("darwin"):
        return Os.MACOS
    if system.startswith(("win32", "cygwin", "msys")):
        return Os.WINDOWS
    return Os.OTHER


def detect_arch() -> Arch:
    """Detect the current CPU architecture."""
    # NOTE: avoid platform.machine() on Windows, it may query WMI.
    if detect_os() == Os.WINDOWS:
        machine = (
            _os.environ.get("PROCESSOR_ARCHITEW6432")
            or _os.environ.get("PROCESSOR_ARCHITECTURE")
            or ""
        )
    else:
        machine = _platform.machine()
    return parse_arch(machine) or Arch.OTHER


def _has_musl_loader() -> bool:
    for lib_dir in (Path("/lib"), Path("/usr/lib")):
        try:
            if any(lib_dir.glob("ld-musl-*.so.1")):
                return True
        except OSError:
            continue
    return False


def detect_libc() -> Libc:
    """Detect the C library on Linux.

    glibc reports itself through platform.libc_ver(); musl does not, so a
    musl dynamic loader on disk is taken as the musl signal.
    """
    if detect_os() != Os.LINUX:
        return Libc.UNKNOWN
    lib, _version = _platform.libc_ver()
    if lib == "glibc":
        return Libc.GNU
    if _has_musl_loader():
        return Libc.MUSL
    return Libc.UNKNOWN


@lru_cache(maxsize=1)
def detect_platform() -> PlatformDescriptor:
    """Detect the host platform (once per process)."""
    return PlatformDescriptor(os=detect_os(), arch=detect_arch(), libc=detect_libc())


# -----------------------------------------------------------------------------
# Parsing (CLI overrides)
# -----------------------------------------------------------------------------

_OS_ALIASES = {
    "macos": Os.MACOS,
    "darwin": Os.MACOS,
    "mac": Os.MACOS,
    "linux": Os.LINUX,
    "windows": Os.WINDOWS,
    "win32": Os.WINDOWS,
}

_ARCH_ALIASES = {
    "arm64": Arch.ARM64,
    "aarch64": Arch.ARM64,
    "x86_64": Arch.X86_64,
    "amd64": Arch.X86_64,
    "x64": Arch.X86_64,
    "x86": Arch.X86,
    "i386": Arch.X86,
    "i686": Arch.X86,
}

_LIBC_ALIASES = {
    "gnu": Libc.GNU,
    "glibc": Libc.GNU,
    "musl": Libc.MUSL,
    "unknown": Libc.UNKNOWN,
}


def parse_os(value: str) -> Os | None:
    """Parse an OS name ("darwin", "macos", "linux", ...)."""
    return _OS_ALIASES.get(value.strip().lower())


def parse_arch(value: str) -> Arch | None:
    """Parse an architecture name ("aarch64", "arm64", "x86_64", ...)."""
    return _ARCH_ALIASES.get(value.strip().lower())


def parse_libc(value: str) -> Libc | None:
    """Parse a libc name ("gnu", "musl", ...)."""
    return _LIBC_ALIASES.get(value.strip().lower())
