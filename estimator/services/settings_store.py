"""
Settings store.

Holds the single current pricing settings snapshot. Absent settings are
replaced by the defaults on first read.
"""
from typing import Any, Dict

import structlog

from estimator.models import EstimatorSettings
from estimator.storage.base import EstimatorStorage

logger = structlog.get_logger(__name__)

SETTINGS_FIELDS = ("base_rate", "complexity_factors", "llm")


class SettingsStore:
    """Read and write the global estimator settings."""

    def __init__(self, storage: EstimatorStorage):
        self._storage = storage

    def get(self) -> EstimatorSettings:
        """Return current settings, persisting the defaults if none exist."""
        with self._storage.lock:
            settings = self._storage.load_settings()
            if settings is None:
                settings = EstimatorSettings()
                self._storage.write_settings(settings)
                logger.info("settings_defaults_written", backend=self._storage.backend_name)
            return settings

    def set(self, partial: Dict[str, Any]) -> EstimatorSettings:
        """
        Merge supplied top-level fields over the current settings.

        Fields missing from ``partial`` (or given as None) keep their current
        value. ``llm`` merges per field; ``complexity_factors`` is replaced
        whole. The merged result is validated before it is persisted. This
        method does not recalculate projects.

        Args:
            partial: Any of ``base_rate``, ``complexity_factors``, ``llm``.

        Returns:
            The persisted settings.
        """
        with self._storage.lock:
            current = self.get().to_dict()
            merged = dict(current)
            for key in SETTINGS_FIELDS:
                if partial.get(key) is not None:
                    merged[key] = partial[key]
            if partial.get("llm") is not None:
                merged["llm"] = {
                    **current["llm"],
                    **{k: v for k, v in dict(partial["llm"]).items() if v is not None},
                }

            settings = EstimatorSettings.from_dict(merged)
            self._storage.write_settings(settings)

        logger.info(
            "settings_updated",
            fields=[key for key in SETTINGS_FIELDS if partial.get(key) is not None],
            base_rate=str(settings.base_rate),
            provider=settings.llm.provider.value,
        )
        return settings
