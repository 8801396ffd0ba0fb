import asyncio
import json
from datetime import datetime
from typing import Any, Callable, Sequence

import structlog

from ccwatch.errors import InvalidPayload, MalformedJson, NoJsonFound, ProcessFailed
from ccwatch.models import UsageSnapshot
from ccwatch.normalize import normalize_payload

logger = structlog.get_logger()

DEFAULT_COMMAND: "tuple[str, ...]" = ("bunx", "ccusage", "--json")

# ccusage prints warnings to stderr and may still exit non-zero
WARNING_MARKER = "WARN"

EXCERPT_LIMIT = 500

_NOT_FOUND = object()


def _local_now() -> "datetime":
    return datetime.now().astimezone()


def check_process(returncode: "int", stderr: "str") -> "None":
    """
    raises ProcessFailed when the command exited non-zero with real
    error output. Empty stderr, or stderr mentioning a warning, is
    tolerated whatever the exit code.
    """
    if returncode == 0:
        return

    if stderr.strip() and WARNING_MARKER not in stderr:
        raise ProcessFailed(returncode, stderr)


def _parse(text: "str") -> "Any":
    """
    parses text as JSON, reporting every parser failure as ValueError.
    Deeply nested input exhausts the recursion limit rather than
    raising JSONDecodeError.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(exc.msg) from exc
    except RecursionError as exc:
        raise ValueError("maximum nesting depth exceeded") from exc


def _parse_block(lines: "list[str]", start: "int") -> "Any":
    """
    parses the last block opening with '{' or '[' at column zero, at or
    before start, and running to the end of the output. Returns
    _NOT_FOUND when there is no such block or it does not parse.
    """
    for index in range(start, -1, -1):
        if lines[index].startswith(("{", "[")):
            try:
                return _parse("\n".join(lines[index:]))
            except ValueError:
                return _NOT_FOUND
    return _NOT_FOUND


def extract_json(stdout: "str") -> "Any":
    """
    finds the last JSON value in the command output. The tool may
    print log lines before its data, so lines are scanned from the
    end for the first one starting with '{'.

    When that line does not parse on its own, or there is none, the
    output was most likely pretty-printed or a bare list; the last
    block opening at column zero and running to the end of the output
    is tried instead.
    """
    lines = stdout.splitlines()

    candidate_index = None
    for index in range(len(lines) - 1, -1, -1):
        if lines[index].strip().startswith("{"):
            candidate_index = index
            break

    if candidate_index is None:
        payload = _parse_block(lines, len(lines) - 1)
        if payload is _NOT_FOUND:
            raise NoJsonFound()
        return payload

    candidate = lines[candidate_index].strip()
    try:
        return _parse(candidate)
    except ValueError as exc:
        reason = str(exc)

    payload = _parse_block(lines, candidate_index)
    if payload is _NOT_FOUND:
        raise MalformedJson(reason, candidate[:EXCERPT_LIMIT])
    return payload


class CcusageSource:
    """
    CcusageSource implements the UsageSource protocol by running the
    ccusage CLI as a subprocess and normalising its JSON output.

    Only ProcessFailed escapes fetch(); output that cannot be turned
    into usage data yields a degraded snapshot instead.
    """

    def __init__(
        self,
        command: "Sequence[str]" = DEFAULT_COMMAND,
        clock: "Callable[[], datetime]" = _local_now,
    ) -> "None":
        if not command:
            raise ValueError("command must not be empty")
        self._command = tuple(command)
        self._clock = clock

    @property
    def name(self) -> "str":
        return "ccusage"

    @property
    def command(self) -> "tuple[str, ...]":
        return self._command

    async def fetch(self) -> "UsageSnapshot":
        stdout, stderr, returncode = await self._run()
        check_process(returncode, stderr)

        now = self._clock()
        try:
            payload = extract_json(stdout)
            snapshot = normalize_payload(payload, now)
        except (NoJsonFound, MalformedJson, InvalidPayload) as exc:
            logger.warning(
                "usage_fetch_degraded",
                source=self.name,
                returncode=returncode,
                error=str(exc),
            )
            return UsageSnapshot.degraded(str(exc), now)

        logger.debug(
            "usage_fetch_done",
            source=self.name,
            days=len(snapshot.recent),
            today_cost=snapshot.today.cost,
        )
        return snapshot

    async def _run(self) -> "tuple[str, str, int]":
        """
        runs the command to completion and returns decoded stdout,
        stderr and the exit code. There is no timeout: a running
        invocation is never cancelled.
        """
        logger.debug("ccusage_exec", command=" ".join(self._command))
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ProcessFailed(None, str(exc)) from exc

        stdout, stderr = await process.communicate()
        return (
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
            process.returncode if process.returncode is not None else 0,
        )
