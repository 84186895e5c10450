"""
Provider Registry - Which image-edit backends exist and how they are set up.

Holds the provider classes, the model cards the editor knows about, and
the per-provider configuration read from ``providers.json`` plus the
environment.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from ai_photo_edit.providers.base import (
    ImageEditProvider,
    ModelCard,
    ProviderConfig,
)

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "ai_photo_edit" / "providers.json"

# Checked in order; the first non-empty value wins
API_KEY_ENV_VARS: dict[str, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"),
}

MODEL_ENV_VAR = "AI_PHOTO_EDIT_MODEL"

_ASPECT_RATIOS = ["1:1", "2:3", "3:2", "3:4", "4:3", "4:5", "5:4", "9:16", "16:9", "21:9"]


# Gemini image models, see https://ai.google.dev/gemini-api/docs/image-generation
BUILTIN_MODEL_CARDS: dict[str, ModelCard] = {
    card.id: card for card in (
        ModelCard(
            id="gemini-2.5-flash-image",
            provider="gemini",
            name="Gemini 2.5 Flash Image",
            params={"aspectRatio"},
            param_options={"aspectRatio": _ASPECT_RATIOS},
        ),
        ModelCard(
            id="gemini-3-pro-image-preview",
            provider="gemini",
            name="Gemini 3 Pro Image",
            params={"aspectRatio", "imageSize"},
            param_options={"aspectRatio": _ASPECT_RATIOS, "imageSize": ["1K", "2K", "4K"]},
            param_defaults={"imageSize": "1K"},
        ),
    )
}


def _config_from_dict(entry: Mapping[str, Any]) -> ProviderConfig:
    return ProviderConfig(
        api_key=entry.get("api_key") or "",
        enabled=bool(entry.get("enabled", True)),
        base_url=entry.get("base_url"),
        default_model=entry.get("default_model"),
        extra=dict(entry.get("extra") or {}),
    )


def _config_to_dict(config: ProviderConfig) -> dict[str, Any]:
    return {
        "api_key": config.api_key,
        "enabled": config.enabled,
        "base_url": config.base_url,
        "default_model": config.default_model,
        "extra": config.extra,
    }


class ProviderRegistry:
    """
    Process-wide registry of providers, model cards and configuration.

    There is one instance; constructing the class again returns it.
    Provider objects are built lazily and rebuilt when their
    configuration changes.
    """

    _instance: ProviderRegistry | None = None

    def __new__(cls) -> ProviderRegistry:
        if cls._instance is None:
            registry = super().__new__(cls)
            registry._provider_classes = {}
            registry._live = {}
            registry._cards = dict(BUILTIN_MODEL_CARDS)
            registry._configs = {}
            registry._config_path = None
            cls._instance = registry
        return cls._instance

    _provider_classes: dict[str, type[ImageEditProvider]]
    _live: dict[str, ImageEditProvider]
    _cards: dict[str, ModelCard]
    _configs: dict[str, ProviderConfig]
    _config_path: Path | None

    # -------------------------------------------------------------------------
    # Providers
    # -------------------------------------------------------------------------

    def register_provider(self, provider_class: type[ImageEditProvider]) -> None:
        self._provider_classes[provider_class.id] = provider_class

    def get_provider(self, provider_id: str) -> ImageEditProvider | None:
        """The provider instance for ``provider_id``, or None if unregistered."""
        provider = self._live.get(provider_id)
        if provider is None:
            provider_class = self._provider_classes.get(provider_id)
            if provider_class is None:
                return None
            provider = provider_class(self.get_config(provider_id))
            self._live[provider_id] = provider
        return provider

    def list_configured_providers(self) -> list[str]:
        """Registered providers that have an API key."""
        return [pid for pid in self._provider_classes if self.get_config(pid).api_key]

    # -------------------------------------------------------------------------
    # Model cards
    # -------------------------------------------------------------------------

    def get_model(self, model_id: str) -> ModelCard | None:
        return self._cards.get(model_id)

    def list_models(self, provider_id: str | None = None) -> list[ModelCard]:
        return [
            card for card in self._cards.values()
            if provider_id is None or card.provider == provider_id
        ]

    def default_model(self, provider_id: str) -> ModelCard | None:
        """The configured default model for a provider, else its first card."""
        wanted = self.get_config(provider_id).default_model
        if wanted:
            card = self.get_model(wanted)
            if card is not None:
                return card
            logger.warning("Unknown default model %r for %s", wanted, provider_id)
        cards = self.list_models(provider_id)
        return cards[0] if cards else None

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def get_config(self, provider_id: str) -> ProviderConfig:
        return self._configs.get(provider_id) or ProviderConfig()

    def set_config(self, provider_id: str, config: ProviderConfig) -> None:
        self._configs[provider_id] = config
        # The next get_provider() builds a fresh instance
        self._live.pop(provider_id, None)

    def load_config(
        self,
        path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """
        Read ``providers.json`` and apply environment overrides.

        A missing or unreadable file is not fatal; the environment is
        still consulted. Keys from the environment are only used for
        providers whose file entry has none.
        """
        path = path or DEFAULT_CONFIG_PATH
        self._config_path = path

        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                for provider_id, entry in data.get("providers", {}).items():
                    self.set_config(provider_id, _config_from_dict(entry))
            except (OSError, json.JSONDecodeError, AttributeError) as e:
                logger.warning("Failed to load provider config %s: %s", path, e)

        self._apply_env(os.environ if environ is None else environ)

    def _apply_env(self, environ: Mapping[str, str]) -> None:
        model_override = environ.get(MODEL_ENV_VAR)
        for provider_id, names in API_KEY_ENV_VARS.items():
            config = self.get_config(provider_id)
            if not config.api_key:
                name = next((n for n in names if environ.get(n)), None)
                if name:
                    config.api_key = environ[name]
                    logger.debug("Using %s for %s API key", name, provider_id)
            if model_override:
                card = self.get_model(model_override)
                if card is not None and card.provider == provider_id:
                    config.default_model = card.id
            self.set_config(provider_id, config)

    def save_config(self, path: Path | None = None) -> None:
        """Write every provider configuration as JSON."""
        path = path or self._config_path or DEFAULT_CONFIG_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {"providers": {pid: _config_to_dict(cfg) for pid, cfg in self._configs.items()}}
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def get_registry() -> ProviderRegistry:
    """The process-wide provider registry."""
    return ProviderRegistry()
