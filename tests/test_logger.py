import pytest

from logger import Logger, NullLogger


def test_levels_filter_console(capsys):
    log = Logger(level="warn")
    log.debug("hidden debug")
    log.info("hidden info")
    log.result("hidden result")
    log.warn("shown warn")
    log.error("shown error")

    out, err = capsys.readouterr()
    assert out == ""
    assert "[WARN] shown warn" in err
    assert "[ERROR] shown error" in err


def test_quiet_keeps_results_without_prefix(capsys):
    log = Logger(level="quiet")
    log.info("progress")
    log.result("aws s3 rm s3://b/a.html")

    out, _ = capsys.readouterr()
    assert out == "aws s3 rm s3://b/a.html\n"


def test_set_debug(capsys):
    log = Logger()
    log.set_debug(True)
    log.debug("details")
    assert "[DEBUG] details" in capsys.readouterr().out
    log.set_debug(False)
    assert log.level == "info"


def test_invalid_level():
    with pytest.raises(ValueError):
        Logger(level="loud")


def test_file_log_receives_everything(tmp_path, capsys):
    with Logger(level="error", log_dir=str(tmp_path / "logs"), command="fix") as log:
        log.debug("written to file only")
        path = log.log_file

    assert path.startswith(str(tmp_path / "logs"))
    content = open(path, encoding="utf-8").read()
    assert "Nuxt S3 Fix - FIX Log" in content
    assert "[DEBUG] written to file only" in content
    assert "Finished:" in content
    assert "written to file only" not in capsys.readouterr().err


def test_no_file_without_log_dir():
    log = Logger()
    assert log.start() is None
    log.close()


def test_null_logger_is_silent(capsys):
    log = NullLogger()
    log.error("nothing")
    assert capsys.readouterr() == ("", "")
