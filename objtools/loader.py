"""Loads named mask definitions from a YAML or JSON file."""

from __future__ import annotations

import logging
import yaml
from pathlib import Path
from typing import Any, Optional

from .exceptions import InvalidArgumentError, MaskParseError
from .mask import ObjectMask
from .models import MaskConfig

logger = logging.getLogger(__name__)

# Keys that select how a mask entry is built; each entry uses exactly one.
ENTRY_KINDS = ("tree", "fields", "jsonpaths")


class MaskLoader:
    """
    Loads a file of named masks.

    File layout::

        config:
          array_policy: first
        masks:
          public:
            tree: {name: true, items: [{id: true}]}
          summary:
            fields: [name, owner.email]
          listing:
            jsonpaths: ["$.items[*].id"]

    Usage:
        loader = MaskLoader("masks.yaml")
        public = loader.get("public")

    Or as a one-liner:
        masks = load_masks("masks.yaml")
    """

    def __init__(self, path: str, config: Optional[MaskConfig] = None):
        """
        Initialize the loader.

        Args:
            path: Path to a YAML/JSON mask definition file
            config: Overrides the ``config`` section of the file
        """
        self.path = Path(path)
        self._config = config
        self._data: Optional[dict] = None
        self._masks: Optional[dict[str, ObjectMask]] = None

    @property
    def data(self) -> dict:
        """Load and cache the raw file content."""
        if self._data is None:
            self._data = self._load_file()
        return self._data

    @property
    def config(self) -> MaskConfig:
        if self._config is None:
            self._config = MaskConfig.from_dict(self.data.get("config"))
        return self._config

    def _load_file(self) -> dict:
        """Load definitions from a YAML or JSON file."""
        if not self.path.exists():
            raise FileNotFoundError(f"Mask file not found: {self.path}")

        with open(self.path, 'r') as f:
            content = f.read()

        # JSON is valid YAML, so one parser covers both
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise MaskParseError(
                f"Failed to parse mask file: {e}",
                path=str(self.path),
                reason=str(e)
            )

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise MaskParseError(
                "Mask file must contain a mapping",
                path=str(self.path),
                reason=type(data).__name__
            )
        return data

    def load(self) -> dict[str, ObjectMask]:
        """
        Build every mask defined in the file.

        Returns:
            Mapping of mask name to ObjectMask
        """
        if self._masks is None:
            config = self.config
            file_config = self.data.get("config")
            # Only a level named in the file changes the package logger.
            if isinstance(file_config, dict) and "log_level" in file_config:
                logging.getLogger("objtools").setLevel(config.log_level.value)

            definitions = self.data.get("masks") or {}
            if not isinstance(definitions, dict):
                raise MaskParseError(
                    "'masks' must be a mapping of names to definitions",
                    path=str(self.path)
                )

            self._masks = {
                str(name): self._build(str(name), entry, config)
                for name, entry in definitions.items()
            }
            logger.info("Loaded %d masks from %s", len(self._masks), self.path)
        return self._masks

    def get(self, name: str) -> ObjectMask:
        """Return one named mask."""
        masks = self.load()
        if name not in masks:
            raise KeyError(f"No mask named '{name}' in {self.path}")
        return masks[name]

    def _build(self, name: str, entry: Any, config: MaskConfig) -> ObjectMask:
        if not isinstance(entry, dict):
            raise MaskParseError(
                f"Mask '{name}' must be a mapping with one of: {', '.join(ENTRY_KINDS)}",
                path=f"masks.{name}"
            )

        kinds = [kind for kind in ENTRY_KINDS if kind in entry]
        extra = [key for key in entry if key not in ENTRY_KINDS]
        if len(kinds) != 1 or extra:
            raise MaskParseError(
                f"Mask '{name}' must have exactly one of: {', '.join(ENTRY_KINDS)}",
                path=f"masks.{name}",
                reason=", ".join(sorted(str(key) for key in entry))
            )

        kind = kinds[0]
        value = entry[kind]
        try:
            if kind == "tree":
                return ObjectMask(value, config)
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise MaskParseError(
                    f"Mask '{name}': '{kind}' must be a list of strings",
                    path=f"masks.{name}.{kind}"
                )
            if kind == "fields":
                return ObjectMask.from_field_list(value, config)
            return ObjectMask.from_jsonpaths(value, config)
        except InvalidArgumentError as e:
            raise MaskParseError(
                f"Mask '{name}' is invalid: {e.message}",
                path=f"masks.{name}.{kind}",
                reason=e.message
            )


def load_masks(path: str, config: Optional[MaskConfig] = None) -> dict[str, ObjectMask]:
    """
    Load every mask defined in a YAML/JSON file.

        from objtools.loader import load_masks
        masks = load_masks("masks.yaml")

    Args:
        path: Path to the definition file
        config: Overrides the ``config`` section of the file

    Returns:
        Mapping of mask name to ObjectMask
    """
    return MaskLoader(path, config).load()
