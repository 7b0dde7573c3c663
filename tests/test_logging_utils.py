import logging

from tqdm import tqdm

from lastfm2spotify.logging_utils import (
    LogEntry,
    LogLevel,
    SyncLogger,
    UserErrors,
    attach_sync_logger,
)


def test_levels_are_filtered(capsys):
    logger = SyncLogger(verbose=False, use_color=False)
    logger.debug("hidden")
    logger.info("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "[INFO] shown" in out


def test_verbose_shows_debug(capsys):
    SyncLogger(verbose=True, use_color=False).debug("details")
    assert "[DEBUG] details" in capsys.readouterr().out


def test_quiet_only_shows_errors(capsys):
    logger = SyncLogger(quiet=True, use_color=False)
    logger.info("nope")
    logger.success("nope either")
    logger.error("broken")

    out = capsys.readouterr().out
    assert "nope" not in out
    assert "[ERROR] broken" in out


def test_colored_rendering():
    line = LogEntry(LogLevel.SUCCESS, "done").render(use_color=True)
    assert line.startswith("\033[92m")
    assert "✓ done" in line
    assert line.endswith("\033[0m")


def test_format_summary(capsys):
    logger = SyncLogger(use_color=False)
    assert logger.format_summary() == "No activity"

    logger.success("one")
    logger.success("two")
    logger.warning("careful")
    logger.error("bad")

    summary = logger.format_summary()
    assert "2 completed" in summary
    assert "1 warnings" in summary
    assert "1 errors" in summary


def test_package_logging_is_routed_to_sync_logger(capsys):
    sync_logger = SyncLogger(use_color=False)
    handler = attach_sync_logger(sync_logger)
    package_logger = logging.getLogger("lastfm2spotify")
    try:
        logging.getLogger("lastfm2spotify.cache").warning("cache is large")
        logging.getLogger("lastfm2spotify.resolver").debug("not verbose")
        logging.getLogger("other.library").warning("unrelated")
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(logging.NOTSET)

    out = capsys.readouterr().out
    assert "[WARNING] cache is large" in out
    assert "not verbose" not in out
    assert "unrelated" not in out
    assert sync_logger.counts[LogLevel.WARNING] == 1


def test_lines_are_written_above_an_active_progress_bar(capsys):
    logger = SyncLogger(use_color=False)
    with tqdm(total=2, desc="resolving") as bar:
        logger.info("track found")
        bar.update(1)

    captured = capsys.readouterr()
    assert "[INFO] track found" in captured.out
    assert "resolving" not in captured.out


def test_user_errors_include_original_message():
    assert "bad token" in UserErrors.spotify_auth_failed("bad token")
    assert "config.yml" in UserErrors.config_not_found("config.yml")
    assert "amount" in UserErrors.invalid_config("amount")
    assert UserErrors.playlists_failed(1, 3).startswith("1 of 3 playlists failed")
