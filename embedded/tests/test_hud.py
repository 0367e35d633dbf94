from __future__ import annotations

from posemirror.core.config import Settings
from posemirror.core.session import PoseSession
from posemirror.gui.hud import MirrorApp, build_parser, format_state_line


def test_keys_map_to_triggers():
    session = PoseSession(Settings(vision_mock=True, countdown_tick_seconds=10.0))
    app = MirrorApp(session)
    try:
        assert app.handle_key(ord("b")) is True
        assert session.state.skeleton_visible is True
        app.handle_key(ord("m"))
        assert session.mirror.flag is True
        app.handle_key(ord("r"))
        assert session.state.recording is True
        app.handle_key(ord("g"))
        assert session.capture.active
        assert app.handle_key(ord("9")) is False
        assert app.handle_key(ord("q")) is False
    finally:
        session.stop()


def test_format_state_line():
    line = format_state_line({"grade": "B", "score_text": "(84 pts)", "countdown": "3", "skeleton": "Skeleton: ON", "mirror": True})
    assert line.startswith("[B] (84 pts)")
    assert "countdown=3" in line
    assert "mirror=True" in line


def test_parser_defaults_and_cli_flag():
    parser = build_parser()
    assert parser.description == "Pose mirror HUD"
    args = parser.parse_args(["--cli", "--base-url", "http://pi.local:8000"])
    assert args.cli is True
    assert args.base_url == "http://pi.local:8000"
    assert build_parser().parse_args([]).base_url == "http://127.0.0.1:8000"
