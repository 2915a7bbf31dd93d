"""
Progress Configuration Module

Configuration dataclass for driver timing, rendering and callback handling,
plus the thread-safe renderer registry.
"""

import logging
from dataclasses import dataclass, fields
from threading import RLock
from typing import Callable, Dict, List, Optional, Tuple, Type

from .core.tracker import ProgressRenderer

logger = logging.getLogger(__name__)


@dataclass
class ProgressConfig:
    """Configuration settings for the staged progress system."""

    # Simulated driver timing (in seconds)
    step: int = 20  # Progress increment per tick
    step_delay: float = 0.1  # Wait between ticks
    settle_delay: float = 0.3  # Pause after a stage completes

    # Event-driven driver
    stream_timeout: float = 45.0  # Maximum silence on a stream before failing

    # Completion gate
    back_delay: float = 1.5  # Artificial "retrieving saved data" delay on reset

    # Rendering
    rich_refresh_rate: int = 8  # Rich renderer refresh rate (Hz)
    debounce_interval: float = 0.05  # Debouncing for rapid updates
    enable_update_debouncing: bool = True

    # Error handling
    max_callback_errors: int = 5  # Max callback errors before disabling
    log_callback_errors: bool = True  # Whether to log callback errors

    def __post_init__(self) -> None:
        if self.step <= 0:
            raise ValueError(f"step must be positive, got {self.step}")
        for name in ("step_delay", "settle_delay", "back_delay", "debounce_interval"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.stream_timeout <= 0:
            raise ValueError(f"stream_timeout must be positive, got {self.stream_timeout}")


# Global configuration instance
_config = ProgressConfig()
_config_lock = RLock()


def get_config() -> ProgressConfig:
    """Get the current global progress configuration."""
    with _config_lock:
        return _config


def set_config(config: ProgressConfig) -> None:
    """Set the global progress configuration."""
    global _config
    with _config_lock:
        _config = config


def update_config(**kwargs) -> None:
    """Update specific configuration values."""
    known = {f.name for f in fields(ProgressConfig)}
    with _config_lock:
        for key, value in kwargs.items():
            if key in known:
                setattr(_config, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")


class RendererRegistry:
    """Thread-safe registry for progress renderers with auto-selection."""

    def __init__(self):
        self._lock = RLock()
        self._renderers: Dict[str, Type[ProgressRenderer]] = {}
        self._checks: Dict[str, Callable[[], bool]] = {}
        self._order: List[str] = []

    def register(
        self,
        name: str,
        renderer_class: Type[ProgressRenderer],
        availability_check: Optional[Callable[[], bool]] = None,
    ) -> None:
        """Register a renderer class; earlier registrations win auto-selection."""
        with self._lock:
            if name not in self._order:
                self._order.append(name)
            self._renderers[name] = renderer_class
            self._checks[name] = availability_check or (lambda: True)
            logger.debug(f"Registered renderer: {name}")

    def get_renderer(self, name: str) -> Optional[Type[ProgressRenderer]]:
        """Get a specific renderer by name."""
        with self._lock:
            return self._renderers.get(name)

    def _candidates(self) -> List[Tuple[str, Type[ProgressRenderer], Callable[[], bool]]]:
        with self._lock:
            return [(name, self._renderers[name], self._checks[name]) for name in self._order]

    def auto_select(self) -> Optional[Type[ProgressRenderer]]:
        """Select the first registered renderer that reports itself available."""
        for name, renderer_class, availability_check in self._candidates():
            try:
                if availability_check() and renderer_class().is_available():
                    logger.debug(f"Auto-selected renderer: {renderer_class.__name__}")
                    return renderer_class
            except Exception as e:
                logger.debug(f"Renderer {name} unavailable: {e}")

        logger.warning("No suitable progress renderer found")
        return None


# Global renderer registry
_renderer_registry = RendererRegistry()


def get_renderer_registry() -> RendererRegistry:
    """Get the global renderer registry."""
    return _renderer_registry


def auto_select_renderer() -> Optional[ProgressRenderer]:
    """
    Auto-select and instantiate the best available renderer.

    Returns:
        ProgressRenderer instance or None if no renderer available
    """
    renderer_class = _renderer_registry.auto_select()
    if renderer_class is None:
        return None

    try:
        return renderer_class()
    except Exception as e:
        logger.error(f"Failed to instantiate renderer {renderer_class.__name__}: {e}")
        return None


def _initialize_default_renderers():
    """Register rich first, tqdm as the fallback."""
    from .display.rich_renderer import RichProgressRenderer, is_rich_available
    from .display.tqdm_renderer import TqdmProgressRenderer, is_tqdm_available

    _renderer_registry.register('rich', RichProgressRenderer, is_rich_available)
    _renderer_registry.register('tqdm', TqdmProgressRenderer, is_tqdm_available)


_initialize_default_renderers()
