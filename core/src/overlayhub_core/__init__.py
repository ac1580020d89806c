from overlayhub_core.config import CoreConfig, load_core_config
from overlayhub_core.home import OverlayHubPaths, ensure_overlayhub_layout, resolve_overlayhub_home

__version__ = "0.1.0"

__all__ = [
    "CoreConfig",
    "OverlayHubPaths",
    "__version__",
    "ensure_overlayhub_layout",
    "load_core_config",
    "resolve_overlayhub_home",
]
