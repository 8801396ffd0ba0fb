class CcwatchError(Exception):
    """
    base class for every error raised by ccwatch.
    """


class FetchError(CcwatchError):
    """
    a usage fetch could not produce a snapshot from the
    accounting tool's output.
    """


class ProcessFailed(FetchError):
    """
    the accounting command could not be started, or exited non-zero
    with genuine (non-warning) stderr output.
    """

    def __init__(self, returncode: "int | None", stderr: "str") -> "None":
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Helper script failed: {stderr.strip()}")


class NoJsonFound(FetchError):
    def __init__(self) -> "None":
        super().__init__("No JSON found in output")


class MalformedJson(FetchError):
    """
    the candidate JSON line failed to parse. `excerpt` holds the
    start of the offending text for diagnostics.
    """

    def __init__(self, reason: "str", excerpt: "str") -> "None":
        self.reason = reason
        self.excerpt = excerpt
        super().__init__(f"JSON parsing error: {reason} - JSON: {excerpt}")


class InvalidPayload(FetchError):
    """
    the JSON parsed but matched none of the known upstream shapes.
    """


class LockFailure(CcwatchError):
    """
    a state cell lock could not be acquired in time.
    """


class CommandError(CcwatchError):
    """
    a command surface operation failed; the message is meant for the
    caller that invoked it.
    """
