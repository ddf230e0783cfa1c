from __future__ import annotations

import dataclasses
import json
import os
import pathlib
import typing

from .logging import getLogger

if typing.TYPE_CHECKING:
    from restructure.patterns import PatternLibrary

logger = getLogger("Restructure")


def _get_default_user_dir() -> pathlib.Path:
    """Return the per-user configuration directory.

    ``$RESTRUCTURE_HOME`` wins when set, otherwise ``~/.restructure``.
    """
    env = os.environ.get("RESTRUCTURE_HOME")
    if env:
        return pathlib.Path(env)
    return pathlib.Path.home() / ".restructure"


DEFAULT_USER_DIR = _get_default_user_dir()

# Bundled, read-only configuration templates.
CONF_DIR = pathlib.Path(__file__).resolve().parent.parent / "conf"


@dataclasses.dataclass(frozen=True, slots=True)
class ConfigConstants:
    OPTIONS_FILENAME: typing.ClassVar[str] = "options.json"
    DEFAULT_LIBRARY_FILENAME: typing.ClassVar[str] = "default_library.json"
    OUTPUT_FORMATS: typing.ClassVar[tuple[str, ...]] = ("map", "list")

    @staticmethod
    def default_log_dir(user_dir: pathlib.Path | None = None) -> pathlib.Path:
        """Return the default log directory based on the user dir."""
        base = user_dir if user_dir is not None else DEFAULT_USER_DIR
        return base / "logs"


@dataclasses.dataclass(slots=True)
class PatternConfiguration:
    """
    One entry of an ordered pattern library description.

    ``path`` is resolved relative to the library file; when it is omitted the
    bundled primitive of the same name is used.

    >>> entry = PatternConfiguration(name="if", is_activated=True)
    >>> entry.to_dict()
    {'name': 'if', 'is_activated': True, 'path': None}
    >>> PatternConfiguration.from_dict({'name': 'list'}).is_activated
    True
    """

    name: str
    is_activated: bool = True
    path: str | None = None

    def to_dict(self) -> dict[str, typing.Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, typing.Any]) -> "PatternConfiguration":
        return cls(**data)


@dataclasses.dataclass(slots=True, repr=False)
class LibraryConfiguration:
    """
    An ordered list of patterns stored as JSON.

    The order of ``patterns`` is the priority order of the resulting
    :class:`~restructure.patterns.PatternLibrary`.
    """

    path: pathlib.Path
    description: str = ""
    patterns: list[PatternConfiguration] = dataclasses.field(default_factory=list)

    def __repr__(self) -> str:
        return f"LibraryConfiguration(path={self.path}, description={self.description}, patterns={[p.name for p in self.patterns]})"

    @property
    def activated(self) -> list[PatternConfiguration]:
        return [p for p in self.patterns if p.is_activated]

    @classmethod
    def from_file(cls, path: pathlib.Path | str) -> "LibraryConfiguration":
        """
        Loads a library description from a JSON file.

        Raises:
            FileNotFoundError: If the file cannot be found.
            json.JSONDecodeError: If the file is not valid JSON.
        """
        config_path = pathlib.Path(path)
        logger.info("Loading pattern library description from %s", config_path)
        try:
            with config_path.open("r", encoding="utf-8") as fp:
                data = json.load(fp)
        except FileNotFoundError:
            logger.error("Pattern library description not found: %s", config_path)
            raise
        except json.JSONDecodeError as e:
            logger.error("Failed to parse library description %s: %s", config_path, e)
            raise

        return cls(
            path=config_path,
            description=data.get("description", ""),
            patterns=[
                PatternConfiguration.from_dict(p) for p in data.get("patterns", [])
            ],
        )

    @classmethod
    def default(cls) -> "LibraryConfiguration":
        return cls.from_file(CONF_DIR / ConfigConstants.DEFAULT_LIBRARY_FILENAME)

    def save(self) -> None:
        logger.info("Saving pattern library description to %s", self.path)
        data = {
            "description": self.description,
            "patterns": [p.to_dict() for p in self.patterns],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as fp:
                json.dump(data, fp, indent=2)
        except IOError as e:
            logger.error("Could not save library description to %s: %s", self.path, e)

    def resolve(self, entry: PatternConfiguration) -> pathlib.Path | None:
        """Return the file of *entry*, or ``None`` for a bundled primitive."""
        if entry.path is None:
            return None
        p = pathlib.Path(entry.path)
        if not p.is_absolute():
            p = self.path.parent / p
        return p

    def build_library(self) -> "PatternLibrary":
        """Load every activated pattern, in order, into a PatternLibrary."""
        from restructure import dot
        from restructure.patterns import PatternLibrary

        patterns = []
        for entry in self.activated:
            pattern_path = self.resolve(entry)
            if pattern_path is None:
                pattern = dot.bundled_pattern(entry.name)
            else:
                pattern = dot.read_pattern(pattern_path, kind=entry.name)
            patterns.append(pattern)
        return PatternLibrary(patterns)


class RestructureConfiguration:
    """
    Manages tool-wide options from a JSON file, offering dictionary-like
    access.

    >>> import tempfile
    >>> temp_dir = tempfile.TemporaryDirectory()
    >>> config_path = pathlib.Path(temp_dir.name) / "options.json"
    >>> config_path.write_text('{"workers": 4}')
    14
    >>> config = RestructureConfiguration(config_path)
    >>> config.workers
    4
    >>> config["output_format"] = "list"
    >>> config.save()
    >>> json.loads(config_path.read_text())["output_format"]
    'list'
    >>> temp_dir.cleanup()
    """

    def __init__(
        self,
        config_path: pathlib.Path | str | None = None,
        *,
        user_dir: pathlib.Path | str | None = None,
    ):
        """
        Initializes and loads the configuration.

        Args:
            config_path: Path to the JSON options file. If None, defaults to
                         'options.json' in the user directory, falling back to
                         the bundled template for reading.
            user_dir: Per-user directory. If None, defaults to ~/.restructure.
        """
        self._user_dir = (
            pathlib.Path(user_dir) if user_dir is not None else DEFAULT_USER_DIR
        )

        template_path: pathlib.Path | None = None
        if config_path is not None:
            self.config_file = pathlib.Path(config_path)
        else:
            self.config_file = self._user_dir / ConfigConstants.OPTIONS_FILENAME
            template_path = CONF_DIR / ConfigConstants.OPTIONS_FILENAME

        self._options: dict[str, typing.Any] = {}
        self._load(fallback_path=template_path)

    def _load(self, fallback_path: pathlib.Path | None = None) -> None:
        """Loads configuration from the JSON file, handling potential errors."""
        paths_to_try = [self.config_file]
        if fallback_path is not None and fallback_path not in paths_to_try:
            paths_to_try.append(fallback_path)

        for path in paths_to_try:
            try:
                with path.open("r", encoding="utf-8") as fp:
                    self._options = json.load(fp)
                logger.debug("Loaded configuration from %s", path)
                break
            except FileNotFoundError:
                logger.debug("Configuration file %s not found", path)
            except json.JSONDecodeError:
                logger.error("Failed to parse config file: %s", path)

        else:
            logger.debug("No valid configuration found; using defaults in memory.")
            self._options = {}

    def save(self) -> None:
        """Saves the current configuration to the JSON file."""
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with self.config_file.open("w", encoding="utf-8") as fp:
                json.dump(self._options, fp, indent=2)
            logger.info("Configuration saved to %s", self.config_file)
        except IOError as e:
            logger.error("Failed to save configuration to %s: %s", self.config_file, e)

    @property
    def user_dir(self) -> pathlib.Path:
        return self._user_dir

    @property
    def log_dir(self) -> pathlib.Path:
        """Returns the configured log directory, or the default one if not set."""
        path_str = self._options.get("log_dir")
        if not path_str:
            path_str = str(ConfigConstants.default_log_dir(self._user_dir))
            self._options["log_dir"] = path_str
        return pathlib.Path(path_str)

    @property
    def library_file(self) -> pathlib.Path:
        """Library description to use; the bundled default when unset."""
        path_str = self._options.get("library")
        if not path_str:
            return CONF_DIR / ConfigConstants.DEFAULT_LIBRARY_FILENAME
        return pathlib.Path(path_str)

    @property
    def output_format(self) -> str:
        fmt = self._options.get("output_format", "map")
        if fmt not in ConfigConstants.OUTPUT_FORMATS:
            logger.warning("Unknown output format %r; using 'map'", fmt)
            return "map"
        return fmt

    @property
    def workers(self) -> int:
        return int(self._options.get("workers", 1))

    @property
    def max_steps(self) -> int | None:
        value = self._options.get("max_steps")
        return None if value is None else int(value)

    def __getitem__(self, name: str) -> typing.Any:
        return self._options[name]

    def __setitem__(self, name: str, value: typing.Any) -> None:
        self._options[name] = value

    def get(self, name: str, default: typing.Any = None) -> typing.Any:
        return self._options.get(name, default)

    def set(self, name: str, value: typing.Any) -> None:
        self._options[name] = value
