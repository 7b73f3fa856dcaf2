import subprocess
import unittest
from unittest.mock import patch

from soundbreak.core.errors import PlaybackCommandError
from soundbreak.core.monitor.types import PlaybackCommand
from soundbreak.core.playback.controller import (
    AppleScriptPlayerStage,
    PlaybackController,
    PlaybackStage,
    PlayerctlStage,
    StageResult,
    XdotoolMediaKeyStage,
    default_stages,
)

CONTROLLER_RUN = "soundbreak.core.playback.controller.run_command"


def _completed(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["x"], returncode=returncode, stdout=stdout, stderr=stderr)


class _StageStub(PlaybackStage):
    def __init__(self, name: str, result, calls: list) -> None:
        super().__init__()
        self.name = name
        self._result = result
        self._calls = calls

    def send(self, command: PlaybackCommand) -> StageResult:
        self._calls.append((self.name, command))
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


class TestFallbackChain(unittest.TestCase):
    def test_first_successful_stage_wins(self) -> None:
        calls: list = []
        controller = PlaybackController([
            _StageStub("now-playing", StageResult(True, "Paused: Spotify"), calls),
            _StageStub("media-key", StageResult(True, "key"), calls),
        ])
        self.assertEqual(controller.send(PlaybackCommand.PAUSE), "Paused: Spotify")
        self.assertEqual(calls, [("now-playing", PlaybackCommand.PAUSE)])

    def test_falls_back_to_media_key(self) -> None:
        calls: list = []
        controller = PlaybackController([
            _StageStub("now-playing", StageResult(False, "No players found"), calls),
            _StageStub("media-key", StageResult(True, "Used media key fallback"), calls),
        ])
        self.assertEqual(controller.send(PlaybackCommand.PLAY), "Used media key fallback")
        self.assertEqual([c[0] for c in calls], ["now-playing", "media-key"])

    def test_all_stages_failing_names_each_stage(self) -> None:
        calls: list = []
        controller = PlaybackController([
            _StageStub("now-playing", StageResult(False, "No players found"), calls),
            _StageStub("media-key", RuntimeError("no display"), calls),
        ])
        with self.assertRaises(PlaybackCommandError) as ctx:
            controller.send(PlaybackCommand.PAUSE)
        err = ctx.exception
        self.assertEqual(err.command, "pause")
        self.assertEqual(err.failures, [("now-playing", "No players found"), ("media-key", "no display")])
        self.assertEqual(str(err), "pause failed (now-playing: No players found; media-key: no display)")

    def test_no_stages_is_an_error(self) -> None:
        with self.assertRaises(PlaybackCommandError) as ctx:
            PlaybackController([]).send(PlaybackCommand.PLAY)
        self.assertIn("no playback control available", str(ctx.exception))


class TestStages(unittest.TestCase):
    def test_playerctl_stage(self) -> None:
        with patch(CONTROLLER_RUN, return_value=_completed(0)) as run:
            result = PlayerctlStage().send(PlaybackCommand.PAUSE)
        self.assertTrue(result.ok)
        self.assertEqual(run.call_args.args[0], ["playerctl", "pause"])

        with patch(CONTROLLER_RUN, return_value=_completed(1, stderr="No players found\n")):
            result = PlayerctlStage().send(PlaybackCommand.PLAY)
        self.assertEqual(result, StageResult(False, "No players found"))

        with patch(CONTROLLER_RUN, return_value=None):
            result = PlayerctlStage().send(PlaybackCommand.PLAY)
        self.assertEqual(result, StageResult(False, "playerctl not available"))

    def test_xdotool_sends_matching_media_key(self) -> None:
        with patch(CONTROLLER_RUN, return_value=_completed(0)) as run:
            XdotoolMediaKeyStage().send(PlaybackCommand.PLAY)
            XdotoolMediaKeyStage().send(PlaybackCommand.PAUSE)
        keys = [c.args[0][-1] for c in run.call_args_list]
        self.assertEqual(keys, ["XF86AudioPlay", "XF86AudioPause"])

    def test_applescript_stage_needs_a_running_player(self) -> None:
        stage = AppleScriptPlayerStage()
        with patch(CONTROLLER_RUN, return_value=_completed(0, "Spotify, Music\n")) as run:
            result = stage.send(PlaybackCommand.PAUSE)
        self.assertEqual(result, StageResult(True, "Paused: Spotify, Music"))
        script = run.call_args.args[0][2]
        self.assertIn("if player state is playing then", script)

        with patch(CONTROLLER_RUN, return_value=_completed(0, "|\n")):
            result = stage.send(PlaybackCommand.PLAY)
        self.assertEqual(result, StageResult(False, "no running player to control"))

    def test_applescript_player_already_in_target_state_is_success(self) -> None:
        stage = AppleScriptPlayerStage()
        with patch(CONTROLLER_RUN, return_value=_completed(0, "|Spotify\n")) as run:
            result = stage.send(PlaybackCommand.PLAY)
        self.assertEqual(result, StageResult(True, "Already playing: Spotify"))
        script = run.call_args.args[0][2]
        self.assertIn("if player state is paused then", script)
        self.assertIn("else if player state is playing then", script)

    def test_darwin_chain_never_falls_back_to_a_toggle_key(self) -> None:
        controller = PlaybackController(default_stages("darwin"))
        with patch(CONTROLLER_RUN, return_value=_completed(0, "|\n")) as run:
            with self.assertRaises(PlaybackCommandError) as ctx:
                controller.send(PlaybackCommand.PLAY)
        self.assertEqual(run.call_count, 1)
        self.assertEqual(ctx.exception.failures, [("osascript", "no running player to control")])

    def test_default_stages_per_platform(self) -> None:
        self.assertEqual([s.name for s in default_stages("linux")], ["playerctl", "media-key"])
        self.assertEqual([s.name for s in default_stages("darwin")], ["osascript"])
        self.assertEqual([s.name for s in default_stages("win32")], ["media-session", "media-key"])
        self.assertEqual(default_stages("sunos5"), [])


if __name__ == "__main__":
    unittest.main()
