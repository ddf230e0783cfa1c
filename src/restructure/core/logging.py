import collections
import dataclasses
import functools
import logging
import logging.config
import pathlib
import shutil
import threading
import typing

LOG_FILENAME = "restructure.log"

_config = collections.Counter(version=0)


@dataclasses.dataclass(slots=True)
class LevelFlag:
    """
    LevelFlag provides a cached boolean check for whether a logger is enabled
    for a given level.

    It avoids repeated calls to logger.isEnabledFor(level) inside the candidate
    search, and refreshes its cache when logging configuration changes.

    Example:
        logger = getLogger("Restructure.iso")
        debug_on = LevelFlag(logger.name, logging.DEBUG)

        # In a hot loop:
        if debug_on:
            logger.debug("candidate %s", node)
    """

    _logger_name: str
    _level: int
    _last_version: int = dataclasses.field(default=-1, init=False)
    _cached: bool = dataclasses.field(default=False, init=False)

    def __bool__(self) -> bool:
        current = self.get_config_version()
        if self._last_version != current:
            self._cached = getLogger(self._logger_name).isEnabledFor(self._level)
            self._last_version = current
        return self._cached

    def __repr__(self):
        lvlname = logging.getLevelName(self._level)
        return f"<LevelFlag {self._logger_name}≥{lvlname}>"

    @staticmethod
    def bump_config_version() -> None:
        _config["version"] += 1

    @staticmethod
    def get_config_version() -> int:
        return _config["version"]


class RestructureLogger(logging.Logger):
    """Custom logger that supports a per-thread Mapped Diagnostic Context (MDC)."""

    _mdc_local: "threading.local" = threading.local()

    @classmethod
    def mdc(cls) -> typing.Mapping[str, typing.Any]:
        if not getattr(cls._mdc_local, "mdc", None):
            cls.set_mdc({"step": ""})
        return getattr(cls._mdc_local, "mdc", {})

    @classmethod
    def set_mdc(cls, d: dict[str, typing.Any]) -> None:
        cls._mdc_local.mdc = d

    # ------------------------------------------------------------------
    # Quick level checks (cached)
    # ------------------------------------------------------------------
    @functools.cached_property
    def debug_on(self) -> LevelFlag:  # noqa: D401
        """Fast flag: is DEBUG enabled for this logger?"""
        return LevelFlag(self.name, logging.DEBUG)

    @functools.cached_property
    def info_on(self) -> LevelFlag:  # noqa: D401
        return LevelFlag(self.name, logging.INFO)

    # ---------------------------------------------------------------------
    # MDC helpers
    # ---------------------------------------------------------------------
    @classmethod
    def add_mdc(cls, key: str, value: typing.Any) -> None:
        """Add or update a key/value pair to the thread-local MDC."""
        d = dict(cls.mdc())
        d[key] = value
        cls.set_mdc(d)

    @classmethod
    def get_mdc(cls, key: str, default: typing.Any | None = None):
        """Return the value stored under *key* in the MDC (or *default*)."""
        return cls.mdc().get(key, default)

    @classmethod
    def remove_mdc(cls, key: str) -> None:
        """Remove *key* from the MDC if present."""
        d = dict(cls.mdc())
        d.pop(key, None)
        cls.set_mdc(d)

    # Store the current reduction step in the MDC so formatters can include
    # it in every record emitted while the driver is running.
    @classmethod
    def update_step(cls, step: int) -> None:
        cls.add_mdc("step", step)

    @classmethod
    def reset_step(cls) -> None:
        cls.remove_mdc("step")

    def makeRecord(
        self,
        name,
        level,
        fn,
        lno,
        msg,
        args,
        exc_info,
        func=None,
        extra: dict[str, typing.Any] | None = None,
        sinfo=None,
    ):
        """Inject the current MDC into every ``LogRecord`` that we create."""
        if not extra:
            extra = {}
        extra.update(self.mdc())
        return super().makeRecord(
            name,
            level,
            fn,
            lno,
            msg,
            args,
            exc_info,
            func=func,
            extra=extra,
            sinfo=sinfo,
        )


class RestructureFormatter(logging.Formatter):
    """Formatter that renders the MDC ``step`` key when it is set."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        step = getattr(record, "step", "")
        if step != "" and step is not None:
            record.step = f" - step {step}"
        else:
            record.step = ""
        return super().format(record)


# File paths for handlers are set to `None` initially and will be populated
# by the `configure_loggers` function.
conf: dict[str, typing.Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "RestructureFormatter": {
            "()": RestructureFormatter,
            "format": "%(asctime)s - %(name)s - %(levelname)s%(step)s - %(message)s",
        },
        "rawFormatter": {
            "format": "%(message)s",
        },
    },
    "handlers": {
        "consoleHandler": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "rawFormatter",
            "stream": "ext://sys.stderr",
        },
        "defaultFileHandler": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "RestructureFormatter",
            "filename": None,  # Placeholder, will be set dynamically
        },
    },
    "loggers": {
        "Restructure": {
            "level": "INFO",
            "handlers": ["consoleHandler", "defaultFileHandler"],
            "propagate": False,
        },
        "Restructure.iso": {
            "level": "INFO",
            "handlers": ["defaultFileHandler"],
            "propagate": False,
        },
        "Restructure.merge": {
            "level": "INFO",
            "handlers": ["defaultFileHandler"],
            "propagate": False,
        },
        "Restructure.driver": {
            "level": "INFO",
            "handlers": ["consoleHandler", "defaultFileHandler"],
            "propagate": False,
        },
        "Restructure.dot": {
            "level": "INFO",
            "handlers": ["defaultFileHandler"],
            "propagate": False,
        },
        "Restructure.cli": {
            "level": "INFO",
            "handlers": ["consoleHandler", "defaultFileHandler"],
            "propagate": False,
        },
    },
    "root": {
        "level": "WARNING",
        "handlers": ["consoleHandler"],
    },
}


class LoggerConfigurator:
    """Query and change logger levels at runtime."""

    @staticmethod
    def available_loggers(prefix: str | None = None) -> list[str]:
        """Sorted names of the known loggers at or below *prefix*.

        Loggers created through :func:`getLogger` count as well as the ones
        declared in ``conf``.
        """
        known = {
            name
            for name, obj in logging.Logger.manager.loggerDict.items()
            if isinstance(obj, logging.Logger)
        }
        known.update(conf["loggers"])
        if prefix is None:
            return sorted(known)
        return sorted(n for n in known if n == prefix or n.startswith(prefix + "."))

    @staticmethod
    def get_level(name: str) -> int:
        """Return the effective level for logger `name`."""
        return getLogger(name).getEffectiveLevel()

    @staticmethod
    def set_level(logger_name: str, level_name: str) -> None:
        """
        Change the level for `logger_name` to one of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        """
        lvl = getattr(logging, level_name.upper(), None)
        if not isinstance(lvl, int):
            raise ValueError(f"Unknown logging level: {level_name}")
        getLogger(logger_name, lvl).setLevel(lvl)
        # invalidate all LevelFlags
        LevelFlag.bump_config_version()

    @classmethod
    def set_tree_level(cls, level_name: str, prefix: str = "Restructure") -> list[str]:
        """Set *level_name* on *prefix* and every logger below it; return their names."""
        names = cls.available_loggers(prefix)
        if prefix not in names:
            names.insert(0, prefix)
        for name in names:
            cls.set_level(name, level_name)
        return names


def clear_logs(log_dir: str | pathlib.Path) -> None:
    """Remove the log directory and everything in it."""
    shutil.rmtree(log_dir, ignore_errors=True)


def configure_loggers(log_dir: str | pathlib.Path, quiet: bool = False) -> None:
    """
    Configures the loggers using a dictionary, creating the log file in the specified directory.

    When *quiet* is set, the console handler only reports errors.
    """
    log_dir = pathlib.Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    conf["handlers"]["defaultFileHandler"]["filename"] = (
        log_dir / LOG_FILENAME
    ).as_posix()
    conf["handlers"]["consoleHandler"]["level"] = "ERROR" if quiet else "INFO"

    logging.config.dictConfig(conf)
    LevelFlag.bump_config_version()


def getLogger(name: str, default_level: int = logging.INFO) -> RestructureLogger:
    """Return a :class:`RestructureLogger`.

    When wrapping an existing logger whose ``propagate`` flag is *False*
    **and** that has **no handlers**, the record would be lost.  We flip
    ``propagate`` back to *True* so that messages bubble to the root
    handlers.
    """

    name = name or __name__
    base = logging.getLogger(name)
    if isinstance(base, RestructureLogger):
        return base
    loglvl = base.level
    if loglvl == logging.NOTSET or loglvl < default_level:
        loglvl = default_level
    new = RestructureLogger(base.name, level=loglvl)
    # copy over handlers/filters/propagate flag
    new.handlers = list(base.handlers)
    new.filters = list(base.filters)
    new.propagate = base.propagate
    new.disabled = base.disabled
    # Keep the hierarchical parent so records still reach root handlers.
    new.parent = base.parent
    if not new.handlers and not new.propagate:
        new.propagate = True

    # replace it in the manager so future getLogger(...) calls return the subclass
    logging.Logger.manager.loggerDict[name] = new
    return new
