"""
Image URL strategies selected once at startup from IMAGE_SOURCE.

Deterministic sources format a URL template; resolver-backed sources look
the id up through the Alchemy resolution pipeline.
"""

from abc import ABC, abstractmethod
from typing import Callable, Union

from ..config.config_module import ConfigError
from ..config.logger_module import log_info
from ..resolver.resolver_workflow import CRYPTOPUNKS_APP_TEMPLATE, ImageUrlResolver, format_template


LARVALABS_TEMPLATE = "https://www.larvalabs.com/cryptopunks/cryptopunk{id}.png"

DETERMINISTIC_TEMPLATES = {
    "cryptopunks.app": CRYPTOPUNKS_APP_TEMPLATE,
    "larvalabs": LARVALABS_TEMPLATE,
    # OpenSea has no stable per-token image path; serve the cryptopunks.app image
    "opensea": CRYPTOPUNKS_APP_TEMPLATE,
}

RESOLVER_BACKED_SOURCES = ("opensea-cdn", "alchemy")


class ImageSource(ABC):
    """Abstract base class for image URL strategies."""

    name: str = ""

    @abstractmethod
    def image_url(self, punk_id: Union[str, int]) -> str:
        """Return the image URL served for a punk."""
        pass


class DeterministicTemplate(ImageSource):
    """Formats a fixed URL template with the id; no I/O."""

    def __init__(self, pattern: str, name: str = "template"):
        self.pattern = pattern
        self.name = name

    def image_url(self, punk_id: Union[str, int]) -> str:
        return format_template(self.pattern, punk_id)


class ResolverBacked(ImageSource):
    """Delegates to ImageUrlResolver (mapping store, then Alchemy, then fallback)."""

    def __init__(self, resolver: ImageUrlResolver, name: str = "alchemy"):
        self.resolver = resolver
        self.name = name

    def image_url(self, punk_id: Union[str, int]) -> str:
        return self.resolver.resolve(punk_id)


def build_image_source(name: str,
                       resolver_factory: Callable[[], ImageUrlResolver] = None) -> ImageSource:
    """
    Create the image source for a configured name.

    Args:
        name: IMAGE_SOURCE value
        resolver_factory: Builds the resolver for resolver-backed sources

    Returns:
        ImageSource strategy instance

    Raises:
        ConfigError: For unknown names or a missing resolver factory
    """
    if name in DETERMINISTIC_TEMPLATES:
        source = DeterministicTemplate(DETERMINISTIC_TEMPLATES[name], name=name)
    elif name in RESOLVER_BACKED_SOURCES:
        if resolver_factory is None:
            raise ConfigError(f"Image source '{name}' requires the Alchemy resolver")
        source = ResolverBacked(resolver_factory(), name=name)
    else:
        raise ConfigError(f"Unknown image source: {name}")

    log_info(f"Image source selected: {name} ({type(source).__name__})")
    return source
