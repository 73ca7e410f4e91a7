"""Platform abstraction layer."""

from .detection import (
    Arch,
    Libc,
    Os,
    PlatformDescriptor,
    detect_platform,
)
from .paths import (
    home,
    user_config_dir,
    user_data_dir,
)
from .process import (
    ProcessError,
    run,
)

__all__ = [
    # detection
    "Arch",
    "Libc",
    "Os",
    "PlatformDescriptor",
    "detect_platform",
    # paths
    "home",
    "user_config_dir",
    "user_data_dir",
    # process
    "ProcessError",
    "run",
]
