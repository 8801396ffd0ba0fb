import os
import shlex
from dataclasses import dataclass, field

from ccwatch.models import DEFAULT_POLLING_FREQUENCY, Settings, parse_bool
from ccwatch.source.ccusage import DEFAULT_COMMAND

@dataclass
class Config:
    # listen_address: format ":9186" or
    # "127.0.0.1:9186"
    listen_address: "str" = "127.0.0.1:9186"
    metrics_enabled: "bool" = True
    log_level: "str" = "info"
    # run a single fetch, print it and exit
    once: "bool" = False

    # accounting command, split into argv
    command: "list[str]" = field(default_factory=lambda: list(DEFAULT_COMMAND))
    polling_frequency: "str" = DEFAULT_POLLING_FREQUENCY
    auto_start: "bool" = True

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()
        command = os.environ.get("CCWATCH_COMMAND", "")
        if command.strip():
            config.command = shlex.split(command)
        config.polling_frequency = os.environ.get(
            "CCWATCH_POLLING_FREQUENCY", DEFAULT_POLLING_FREQUENCY
        )
        auto_start = os.environ.get("CCWATCH_AUTO_START")
        if auto_start is not None:
            config.auto_start = parse_bool(auto_start)
        return config

    def initial_settings(self) -> "Settings":
        return Settings(
            polling_frequency=self.polling_frequency,
            auto_start=self.auto_start,
        )
