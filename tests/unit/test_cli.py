"""Tests for CLI interface."""
import pytest
from typer.testing import CliRunner
from unittest.mock import AsyncMock, MagicMock, patch

from linkick.cli import app, format_stats
from linkick.core.errors import ChannelNotFound
from linkick.services.link_store import ClassificationStats, LinkRecord, SessionView

runner = CliRunner()


def view_with_one_link():
    link = LinkRecord(
        url="https://github.com/x",
        title="github.com",
        category="DEV",
        sender="ayse",
        description="Shared link",
    )
    return SessionView(
        summary="Listening to demo live chat...",
        links=(link,),
        stats=ClassificationStats(total_links=1, top_category="DEV"),
    )


@pytest.fixture
def mock_controller():
    with patch("linkick.cli.SessionController") as cls:
        controller = MagicMock()
        controller.connect = AsyncMock(return_value=MagicMock(summary="Listening to demo live chat..."))
        controller.stop = AsyncMock()
        controller.snapshot.return_value = view_with_one_link()
        cls.return_value = controller
        yield controller


@pytest.mark.unit
def test_categorize_command():
    result = runner.invoke(app, ["categorize", "https://prnt.sc/abc", "https://example.com"])

    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert lines[0] == "SCREENSHOT\tPRNT.SC\thttps://prnt.sc/abc"
    assert lines[1].startswith("OTHER\t")


@pytest.mark.unit
def test_watch_for_duration(mock_controller):
    result = runner.invoke(app, ["watch", "demo", "--duration", "0"])

    assert result.exit_code == 0
    assert "Listening to demo live chat..." in result.stdout
    assert "1 links (1 active, 0 archived), top category: SOFTWARE / GITHUB" in result.stdout
    mock_controller.connect.assert_awaited_once()
    mock_controller.stop.assert_awaited()


@pytest.mark.unit
def test_watch_interrupted_prints_stats(mock_controller):
    """Ctrl+C still prints the final stats and stops the session."""
    with patch("linkick.cli.asyncio.sleep", new=AsyncMock(side_effect=KeyboardInterrupt)):
        result = runner.invoke(app, ["watch", "demo", "--duration", "60"])

    assert result.exit_code == 0
    assert "Stopped." in result.stdout
    assert "1 links (1 active, 0 archived), top category: SOFTWARE / GITHUB" in result.stdout
    mock_controller.stop.assert_awaited()


@pytest.mark.unit
def test_watch_unknown_channel(mock_controller):
    mock_controller.connect.side_effect = ChannelNotFound("ghost", "channel does not exist")

    result = runner.invoke(app, ["watch", "ghost"])

    assert result.exit_code == 1
    assert "ghost" in result.output
    mock_controller.stop.assert_awaited()


@pytest.mark.unit
def test_watch_open_all(mock_controller):
    with patch("linkick.cli.BatchOpener") as opener_cls:
        opener = MagicMock()
        opener.open = AsyncMock(return_value=["https://github.com/x"])
        opener_cls.return_value = opener

        result = runner.invoke(app, ["watch", "demo", "-d", "0", "--open-all", "--yes"])

    assert result.exit_code == 0
    records, _ = opener.open.await_args.args
    assert [r.url for r in records] == ["https://github.com/x"]
    assert opener.open.await_args.kwargs["confirm"](10) is True


@pytest.mark.unit
def test_format_stats_empty():
    view = SessionView(summary="")
    assert format_stats(view) == "0 links (0 active, 0 archived), top category: -"
