"""
Talk to a chess engine (e.g. Stockfish) over the Universal Chess Interface: plain text lines on the process' stdin / stdout.

Exchange per move:
    > position fen <fen>
    > go depth <N> [movetime <ms>]
    < ... info lines ...
    < bestmove e2e4
"""

import logging
import queue
import shlex
import subprocess
import threading
from dataclasses import dataclass
from typing import IO, Optional

from src.core.exceptions import EngineUnavailableError

_LOGGER = logging.getLogger(__name__)

DEFAULT_DEPTH = 10
HANDSHAKE_TIMEOUT_SECONDS = 5.0
# on top of the movetime the engine was given
RESPONSE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class DifficultyPreset:
    name: str
    depth: int
    movetime_ms: int
    elo: int


# index = difficulty level stored in the configuration. No difficulty means full strength at the configured depth.
DIFFICULTY_PRESETS: list[DifficultyPreset] = [
    DifficultyPreset("Easy", depth=2, movetime_ms=100, elo=1350),
    DifficultyPreset("Medium", depth=6, movetime_ms=300, elo=1700),
    DifficultyPreset("Hard", depth=10, movetime_ms=800, elo=2100),
    DifficultyPreset("Magnus", depth=18, movetime_ms=2000, elo=2850),
]


def difficulty_preset(difficulty: Optional[int]) -> Optional[DifficultyPreset]:
    if difficulty is None or not 0 <= difficulty < len(DIFFICULTY_PRESETS):
        return None
    return DIFFICULTY_PRESETS[difficulty]


class UciEngine:
    """
    One engine process, started lazily on the first request and reused for every move after that.
    Anything going wrong (missing binary, crash, no answer in time) surfaces as EngineUnavailableError.
    """

    def __init__(
        self,
        engine_path: str,
        depth: int = DEFAULT_DEPTH,
        difficulty: Optional[int] = None,
        response_timeout: float = RESPONSE_TIMEOUT_SECONDS,
    ) -> None:
        self.engine_path = engine_path
        self.depth = depth
        self.difficulty = difficulty
        self.response_timeout = response_timeout

        self._process: Optional[subprocess.Popen[str]] = None
        self._lines: queue.Queue[Optional[str]] = queue.Queue()
        self._reader_thread: Optional[threading.Thread] = None

    # --- SEARCH SETTINGS ---
    @property
    def preset(self) -> Optional[DifficultyPreset]:
        return difficulty_preset(self.difficulty)

    @property
    def effective_depth(self) -> int:
        """Preset depth when a difficulty is set, else the configured depth"""
        return self.preset.depth if self.preset else self.depth

    @property
    def movetime_ms(self) -> Optional[int]:
        return self.preset.movetime_ms if self.preset else None

    @property
    def elo(self) -> Optional[int]:
        return self.preset.elo if self.preset else None

    def go_command(self) -> str:
        command = f"go depth {self.effective_depth}"
        if self.movetime_ms is not None:
            command += f" movetime {self.movetime_ms}"
        return command

    # --- LIFECYCLE ---
    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def start(self) -> None:
        """Spawn the engine and go through the UCI handshake"""
        # the configured path may carry command line arguments
        command = shlex.split(self.engine_path)
        if not command:
            raise EngineUnavailableError("No engine configured")
        try:
            self._process = subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                bufsize=1,
            )
        except OSError as exc:
            raise EngineUnavailableError(
                f"Failed to spawn engine process {self.engine_path!r}: {exc}"
            ) from exc

        assert self._process.stdout is not None
        self._lines = queue.Queue()
        self._reader_thread = threading.Thread(
            target=_pump_lines,
            args=(self._process.stdout, self._lines),
            name="uci-engine-reader",
            daemon=True,
        )
        self._reader_thread.start()
        _LOGGER.info("Started engine %s", self.engine_path)

        self._send("uci")
        self._wait_for("uciok", HANDSHAKE_TIMEOUT_SECONDS)
        if self.elo is not None:
            self._send("setoption name UCI_LimitStrength value true")
            self._send(f"setoption name UCI_Elo value {self.elo}")
        self._send("isready")
        self._wait_for("readyok", HANDSHAKE_TIMEOUT_SECONDS)

    def close(self) -> None:
        if self._process is None:
            return
        process, self._process = self._process, None
        if process.poll() is None:
            try:
                self._write(process, "quit")
                process.wait(timeout=1.0)
            except (EngineUnavailableError, subprocess.TimeoutExpired):
                process.kill()
                process.wait()
        _LOGGER.info("Engine stopped")

    def __enter__(self) -> "UciEngine":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- MOVES ---
    def best_move(self, fen: str) -> str:
        """Ask for the best move in the position (blocks until the engine answers)"""
        if not self.is_running:
            self.start()

        self._send(f"position fen {fen}")
        self._send(self.go_command())
        timeout = self.response_timeout + (self.movetime_ms or 0) / 1000
        line = self._wait_for("bestmove", timeout)

        parts = line.split()
        if len(parts) < 2 or parts[1] == "(none)":
            raise EngineUnavailableError(f"Engine returned no move for {fen}")
        _LOGGER.debug("Engine plays %s", parts[1])
        return parts[1]

    # --- PRIVATE HELPERS ---
    def _send(self, command: str) -> None:
        if self._process is None:
            raise EngineUnavailableError("Engine is not running")
        self._write(self._process, command)

    @staticmethod
    def _write(process: "subprocess.Popen[str]", command: str) -> None:
        assert process.stdin is not None
        try:
            process.stdin.write(command + "\n")
            process.stdin.flush()
        except OSError as exc:
            raise EngineUnavailableError(f"Engine stopped accepting input: {exc}") from exc

    def _wait_for(self, keyword: str, timeout: float) -> str:
        """Read engine output until a line starts with the keyword"""
        while True:
            try:
                line = self._lines.get(timeout=timeout)
            except queue.Empty as exc:
                self.close()
                raise EngineUnavailableError(
                    f"Engine did not answer with {keyword!r} within {timeout}s"
                ) from exc
            if line is None:
                self.close()
                raise EngineUnavailableError("Engine process exited")
            if line.startswith(keyword):
                return line


def _pump_lines(stream: IO[str], lines: "queue.Queue[Optional[str]]") -> None:
    """Runs on its own thread: engine output --> queue. None marks the end of the output."""
    for line in stream:
        lines.put(line.strip())
    lines.put(None)
